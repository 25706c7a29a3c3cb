"""Catalog loading workflow node"""

import logging
from typing import Any, Dict

from image_reconciler.catalog.loader import load_catalog as read_catalog_file
from image_reconciler.models.workflow import ReconcileState
from image_reconciler.workflow.utils import new_run_id

logger = logging.getLogger(__name__)


def load_catalog(state: ReconcileState) -> Dict[str, Any]:
    """
    Loading node: Read the catalog file and assign the run identifier.

    A catalog that cannot be read or parsed aborts the run; the error
    propagates out of the graph.

    Args:
        state: Current workflow state with catalog_path

    Returns:
        State update with catalog, entries and run_id
    """
    catalog = read_catalog_file(state.catalog_path, state.settings.catalog_fields)

    for issue in catalog.issues:
        logger.warning(issue)

    logger.info("Loaded %d catalog entries from %s", len(catalog.entries), state.catalog_path)

    return {
        "catalog": catalog,
        "entries": list(catalog.entries),
        "run_id": state.run_id or new_run_id(state.catalog_path, state.image_dirs, state.started_at),
    }
