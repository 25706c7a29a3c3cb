"""Report generation workflow nodes"""

import logging
from pathlib import Path
from typing import Any, Dict

from image_reconciler.models.matching import DecisionOutcome
from image_reconciler.models.report import ReconciliationReport, count_outcomes
from image_reconciler.models.workflow import ReconcileState
from image_reconciler.persistence.transaction import report_path_for, write_report
from image_reconciler.reconcile.reconciler import unused_images
from image_reconciler.report.excel_generator import generate_excel_report
from image_reconciler.workflow.utils import build_resolver, output_dir

logger = logging.getLogger(__name__)


def build_report(state: ReconcileState) -> Dict[str, Any]:
    """
    Reporting node: Assemble the run report from the decisions.

    Args:
        state: Current workflow state with decisions and duplicates

    Returns:
        State update with report populated
    """
    error_details = list(state.catalog.issues)
    error_details.extend(
        f"Entry {decision.catalog_entry_id}: {decision.rationale}"
        for decision in state.decisions
        if decision.outcome == DecisionOutcome.ERROR
    )

    report = ReconciliationReport(
        run_id=state.run_id,
        timestamp=state.started_at,
        catalog_path=str(state.catalog_path),
        dry_run=state.dry_run,
        total_entries=len(state.decisions),
        duplicates_removed=len(state.duplicates) if state.settings.remove_duplicates else 0,
        decisions=state.decisions,
        duplicates=state.duplicates,
        directory_errors=state.index.directory_errors,
        index_collisions=state.index.collisions,
        unused_images=unused_images(state.index, state.entries, build_resolver(state.settings)),
        error_details=error_details,
        **count_outcomes(state.decisions),
    )

    return {"report": report}


def dry_run_report(state: ReconcileState) -> Dict[str, Any]:
    """
    Dry-run node: Write the report and leave the catalog untouched.

    Args:
        state: Current workflow state with report

    Returns:
        State update with report_path set
    """
    report_path = write_report(
        state.report, output_dir(state.settings.report_dir, state.catalog_path)
    )
    logger.info("Dry run, catalog not modified: %s", state.catalog_path)

    return {"report_path": str(report_path)}


def export_excel(state: ReconcileState) -> Dict[str, Any]:
    """
    Export node: Mirror the report into an Excel workbook when requested.

    A failed export is recorded in ``errors``; the JSON report and the
    catalog are already written at this point.

    Args:
        state: Current workflow state with report and excel_path

    Returns:
        State update with errors extended on failure
    """
    if not state.excel_path:
        return {}

    try:
        result_path = generate_excel_report(state.report, Path(state.excel_path))
        logger.info("Excel report saved: %s", result_path)
        return {}
    except OSError as e:
        logger.error("Excel export failed: %s", e)
        return {"errors": state.errors + [f"Excel export error: {e}"]}


def report_location(state: ReconcileState) -> Path:
    """Path of the JSON report for the current run"""
    return report_path_for(state.report, output_dir(state.settings.report_dir, state.catalog_path))
