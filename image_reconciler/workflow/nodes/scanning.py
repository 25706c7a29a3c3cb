"""Image directory scanning workflow node"""

from typing import Any, Dict

from image_reconciler.matching.index import build_index
from image_reconciler.models.workflow import ReconcileState


def scan_images(state: ReconcileState) -> Dict[str, Any]:
    """
    Scanning node: Build the candidate index from the image directories.

    Missing or unreadable directories end up in ``index.directory_errors``
    and do not stop the run.

    Args:
        state: Current workflow state with image_dirs

    Returns:
        State update with index populated
    """
    index = build_index(
        state.image_dirs,
        recursive=state.settings.recursive,
        max_workers=state.settings.max_workers,
        show_progress=state.show_progress,
    )

    return {"index": index}
