"""Image matching workflow node"""

from typing import Any, Dict

from image_reconciler.models.workflow import ReconcileState
from image_reconciler.reconcile.reconciler import reconcile
from image_reconciler.workflow.utils import build_resolver


def match_images(state: ReconcileState) -> Dict[str, Any]:
    """
    Matching node: Reconcile the remaining entries against the index.

    Args:
        state: Current workflow state with entries and index

    Returns:
        State update with decisions and the mutated entries
    """
    decisions, entries = reconcile(
        state.entries,
        state.index,
        resolver=build_resolver(state.settings),
        settings=state.settings.matching,
        tool_tag=state.settings.tool_tag,
        show_progress=state.show_progress,
    )

    return {"decisions": decisions, "entries": entries}
