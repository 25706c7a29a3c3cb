"""Catalog persistence workflow node"""

import logging
from typing import Any, Dict

from image_reconciler.models.workflow import ReconcileState
from image_reconciler.persistence.transaction import ReportWriteError
from image_reconciler.persistence.transaction import commit as commit_catalog
from image_reconciler.persistence.transaction import recheck_matches
from image_reconciler.workflow.nodes.reporting import report_location
from image_reconciler.workflow.utils import output_dir

logger = logging.getLogger(__name__)


def commit(state: ReconcileState) -> Dict[str, Any]:
    """
    Persistence node: Back up the catalog, then write entries and report.

    Backup and write failures abort the run; the error propagates out of
    the graph with the backup (when written) left in place. A report that
    cannot be saved after the catalog was replaced is recorded in ``errors``
    so the run still ends with a summary naming the backup.

    Args:
        state: Current workflow state with catalog, entries and report

    Returns:
        State update with the final report, backup_path and report_path
    """
    fields = state.settings.catalog_fields
    catalog = state.catalog.model_copy(update={"entries": state.entries})

    # Vanished images turn into errors before anything is written
    catalog, report = recheck_matches(catalog, state.report, fields)

    errors = list(state.errors)
    report_path = None
    try:
        backup_path = commit_catalog(
            state.catalog_path,
            catalog,
            report,
            fields=fields,
            backup_dir=output_dir(state.settings.backup_dir, state.catalog_path),
            report_dir=output_dir(state.settings.report_dir, state.catalog_path),
        )
        report_path = str(report_location(state))
    except ReportWriteError as e:
        logger.error("%s", e)
        backup_path = e.backup_path
        errors.append(f"Report write error: {e}")

    report = report.model_copy(update={"backup_path": str(backup_path)})

    return {
        "catalog": catalog,
        "entries": catalog.entries,
        "decisions": report.decisions,
        "report": report,
        "backup_path": str(backup_path),
        "report_path": report_path,
        "errors": errors,
    }
