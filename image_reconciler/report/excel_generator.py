"""Excel mirror of the reconciliation report"""

from datetime import datetime
from pathlib import Path
from typing import List

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from image_reconciler.models.matching import DecisionOutcome, DuplicateFlag, MatchDecision
from image_reconciler.models.report import ReconciliationReport

OUTCOME_FILLS = {
    DecisionOutcome.MATCHED: "E5FFCC",
    DecisionOutcome.SKIPPED: "FFF2CC",
    DecisionOutcome.ERROR: "FFCCCC",
}


def sanitize_for_excel(value):
    """
    Sanitize values for Excel compatibility.

    - Removes illegal characters from strings
    - Strips timezone info from datetime objects

    Args:
        value: Value to sanitize

    Returns:
        Sanitized value safe for Excel cells
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        # Excel doesn't support timezone-aware datetimes
        return value.replace(tzinfo=None)
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def generate_excel_report(report: ReconciliationReport, output_path: Path) -> Path:
    """
    Write the report as a workbook for manual review.

    The JSON report stays the record of the run; this workbook mirrors it
    with Summary, Decisions, Duplicates and Issues sheets.

    Args:
        report: Report of the run
        output_path: Path where to save the Excel file

    Returns:
        Path to generated Excel file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()

    # Remove default sheet
    if "Sheet" in wb.sheetnames:
        wb.remove(wb["Sheet"])

    create_summary_sheet(wb.create_sheet("Summary"), report)
    create_decisions_sheet(wb.create_sheet("Decisions"), report.decisions)
    create_duplicates_sheet(wb.create_sheet("Duplicates"), report.duplicates)
    create_issues_sheet(wb.create_sheet("Issues"), report)

    wb.save(output_path)
    wb.close()

    return output_path


def create_summary_sheet(ws: Worksheet, report: ReconciliationReport) -> None:
    """
    Create Summary sheet with run metadata and counts.

    Args:
        ws: Worksheet to populate
        report: Report of the run
    """
    _write_headers(ws, ["Field", "Value"], "CCE5FF")

    rows = [
        ("Run ID", report.run_id),
        ("Timestamp", report.timestamp),
        ("Catalog", report.catalog_path),
        ("Dry Run", "Yes" if report.dry_run else "No"),
        ("Backup", report.backup_path),
    ]
    rows.extend(report.summary_counts().items())
    rows.append(("Unused Images", len(report.unused_images)))

    for row_idx, (field, value) in enumerate(rows, start=2):
        ws.cell(row=row_idx, column=1, value=field)
        ws.cell(row=row_idx, column=2, value=sanitize_for_excel(value))

    _autofit_columns(ws)


def create_decisions_sheet(ws: Worksheet, decisions: List[MatchDecision]) -> None:
    """
    Create Decisions sheet, one row per catalog entry.

    Args:
        ws: Worksheet to populate
        decisions: Decisions in catalog order
    """
    headers = [
        "Entry ID",
        "Name",
        "Outcome",
        "Tier",
        "Score",
        "Previous Image",
        "New Image",
        "Category",
        "Rationale",
    ]
    _write_headers(ws, headers, "CCE5FF")

    for row_idx, decision in enumerate(decisions, start=2):
        chosen = decision.chosen_image

        ws.cell(row=row_idx, column=1, value=sanitize_for_excel(decision.catalog_entry_id))
        ws.cell(row=row_idx, column=2, value=sanitize_for_excel(decision.entry_name))
        outcome_cell = ws.cell(row=row_idx, column=3, value=decision.outcome.value)
        ws.cell(row=row_idx, column=4, value=decision.tier.value)
        ws.cell(row=row_idx, column=5, value=decision.score)
        ws.cell(row=row_idx, column=6, value=sanitize_for_excel(decision.previous_image))
        ws.cell(
            row=row_idx,
            column=7,
            value=sanitize_for_excel(decision.image_ref if decision.is_match else None),
        )
        ws.cell(row=row_idx, column=8, value=sanitize_for_excel(chosen.category if chosen else None))
        ws.cell(row=row_idx, column=9, value=sanitize_for_excel(decision.rationale))

        fill = OUTCOME_FILLS.get(decision.outcome)
        if fill:
            outcome_cell.fill = PatternFill(start_color=fill, end_color=fill, fill_type="solid")

    _autofit_columns(ws)

    if decisions:
        ws.auto_filter.ref = f"A1:{get_column_letter(len(headers))}{len(decisions) + 1}"


def create_duplicates_sheet(ws: Worksheet, duplicates: List[DuplicateFlag]) -> None:
    """
    Create Duplicates sheet listing removed entries and what they duplicate.

    Args:
        ws: Worksheet to populate
        duplicates: Duplicate flags of the run
    """
    headers = ["Removed ID", "Removed Name", "Kept ID", "Kept Name", "Reason", "Group Key"]
    _write_headers(ws, headers, "FFE5CC")

    for row_idx, flag in enumerate(duplicates, start=2):
        ws.cell(row=row_idx, column=1, value=sanitize_for_excel(flag.duplicate_id))
        ws.cell(row=row_idx, column=2, value=sanitize_for_excel(flag.duplicate_name))
        ws.cell(row=row_idx, column=3, value=sanitize_for_excel(flag.canonical_id))
        ws.cell(row=row_idx, column=4, value=sanitize_for_excel(flag.canonical_name))
        ws.cell(row=row_idx, column=5, value=flag.reason)
        ws.cell(row=row_idx, column=6, value=sanitize_for_excel(flag.group_key))

    _autofit_columns(ws)


def create_issues_sheet(ws: Worksheet, report: ReconciliationReport) -> None:
    """
    Create Issues sheet with directory errors, entry errors and key collisions.

    Args:
        ws: Worksheet to populate
        report: Report of the run
    """
    _write_headers(ws, ["Type", "Subject", "Detail"], "FFCCCC")

    rows = [("Directory", issue.directory, issue.reason) for issue in report.directory_errors]
    rows.extend(("Entry", "", detail) for detail in report.error_details)
    rows.extend(
        ("Collision", collision.key, f"kept {collision.kept}, ignored {collision.ignored}")
        for collision in report.index_collisions
    )

    for row_idx, row in enumerate(rows, start=2):
        for col_idx, value in enumerate(row, start=1):
            ws.cell(row=row_idx, column=col_idx, value=sanitize_for_excel(value))

    _autofit_columns(ws)


def _write_headers(ws: Worksheet, headers: List[str], color: str) -> None:
    for col_idx, header in enumerate(headers, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)
        cell.fill = PatternFill(start_color=color, end_color=color, fill_type="solid")
        cell.alignment = Alignment(horizontal="center", vertical="center")

    # Freeze header row
    ws.freeze_panes = "A2"


def _autofit_columns(ws: Worksheet) -> None:
    for col_idx, col in enumerate(ws.columns, start=1):
        max_length = 0
        for cell in col:
            if cell.value:
                max_length = max(max_length, len(str(cell.value)))
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max_length + 2, 50)
