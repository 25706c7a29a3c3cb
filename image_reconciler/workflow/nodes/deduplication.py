"""Duplicate entry workflow node"""

import logging
from typing import Any, Dict

from image_reconciler.models.workflow import ReconcileState
from image_reconciler.reconcile.duplicates import find_duplicates, remove_duplicates
from image_reconciler.workflow.utils import build_resolver

logger = logging.getLogger(__name__)


def deduplicate(state: ReconcileState) -> Dict[str, Any]:
    """
    Deduplication node: Flag duplicate entries and drop them before matching.

    With ``remove_duplicates`` disabled the flags are still reported but
    every entry is kept.

    Args:
        state: Current workflow state with entries

    Returns:
        State update with duplicates and the remaining entries
    """
    flags = find_duplicates(
        state.entries,
        resolver=build_resolver(state.settings),
        auto_generated_tags=state.settings.auto_generated_tags,
    )

    if not state.settings.remove_duplicates:
        return {"duplicates": flags}

    entries = remove_duplicates(state.entries, flags)
    for flag in flags:
        logger.info(
            "Removing duplicate %s (%s), keeping %s",
            flag.duplicate_id,
            flag.duplicate_name,
            flag.canonical_id,
        )

    return {"duplicates": flags, "entries": entries}
