"""Backup-then-write persistence of a reconciliation run"""

import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

from image_reconciler.catalog.loader import entry_from_record, serialize_catalog
from image_reconciler.models.catalog import Catalog
from image_reconciler.models.configs import CatalogFieldsConfig
from image_reconciler.models.matching import DecisionOutcome
from image_reconciler.models.report import ReconciliationReport, count_outcomes
from image_reconciler.utils.compute_content_hash import compute_file_hash

logger = logging.getLogger(__name__)

REPORT_PREFIX = "reconciliation-report"


class BackupError(OSError):
    """Raised when the catalog backup cannot be written or verified"""


class CatalogWriteError(OSError):
    """Raised when the updated catalog cannot be written"""


class ReportWriteError(OSError):
    """Raised when the report cannot be written after the catalog was replaced"""

    def __init__(self, message: str, backup_path: Path):
        super().__init__(message)
        self.backup_path = backup_path



def backup_path_for(
    catalog_path: Path, backup_dir: Optional[Path] = None, now: Optional[datetime] = None
) -> Path:
    """
    Pick an unused, timestamped backup path for a catalog file.

    Args:
        catalog_path: Catalog file being backed up
        backup_dir: Directory for backups, defaults to the catalog directory
        now: Timestamp to embed, defaults to the current UTC time

    Returns:
        Path such as ``products_backup_20250115T103000123456.json``
    """
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%S%f")
    directory = Path(backup_dir) if backup_dir else catalog_path.parent

    candidate = directory / f"{catalog_path.stem}_backup_{stamp}{catalog_path.suffix}"
    counter = 1
    while candidate.exists():
        candidate = directory / f"{catalog_path.stem}_backup_{stamp}-{counter}{catalog_path.suffix}"
        counter += 1
    return candidate


def report_path_for(report: ReconciliationReport, report_dir: Path) -> Path:
    """Path of the JSON report for a run"""
    return Path(report_dir) / f"{REPORT_PREFIX}-{report.run_id}.json"


def create_backup(
    catalog_path: Path, backup_dir: Optional[Path] = None, now: Optional[datetime] = None
) -> Path:
    """
    Copy the catalog byte-for-byte and verify the copy.

    Args:
        catalog_path: Catalog file to back up
        backup_dir: Directory for backups
        now: Timestamp to embed in the backup name

    Returns:
        Path of the verified backup

    Raises:
        BackupError: If the copy fails or does not match the original
    """
    catalog_path = Path(catalog_path)
    try:
        original_digest = compute_file_hash(catalog_path)
        backup_path = backup_path_for(catalog_path, backup_dir, now)
        backup_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(catalog_path, backup_path)
        backup_digest = compute_file_hash(backup_path)
    except OSError as e:
        raise BackupError(f"Failed to back up {catalog_path}: {e}") from e

    if backup_digest != original_digest:
        raise BackupError(
            f"Backup verification failed for {backup_path}: "
            f"digest {backup_digest[:12]} != {original_digest[:12]}"
        )

    logger.info("Backup created: %s", backup_path)
    return backup_path


def recheck_matches(
    catalog: Catalog,
    report: ReconciliationReport,
    fields: Optional[CatalogFieldsConfig] = None,
) -> Tuple[Catalog, ReconciliationReport]:
    """
    Re-check matched images right before they are written.

    An image that disappeared since the scan is not written: its entry gets
    its original image references back and the decision becomes an error.

    Args:
        catalog: Catalog holding the mutated entries
        report: Report holding the decisions of the run
        fields: Record field names

    Returns:
        Tuple of (catalog, report), both updated when an image vanished
    """
    fields = fields or CatalogFieldsConfig()

    # Keyed by catalog position, ids may repeat
    vanished = {
        decision.entry_position: decision
        for decision in report.decisions
        if decision.is_match and not decision.chosen_image.absolute_path.is_file()
    }
    if not vanished:
        return catalog, report

    entries = []
    for entry in catalog.entries:
        if entry.position in vanished and entry.updated_by is not None:
            original = entry_from_record(entry.record, entry.position, fields)
            entry = entry.model_copy(
                update={"image_refs": original.image_refs, "updated_by": original.updated_by}
            )
        entries.append(entry)

    decisions = []
    error_details = list(report.error_details)
    for decision in report.decisions:
        if vanished.get(decision.entry_position) is decision:
            message = f"Matched image vanished before commit: {decision.chosen_image.absolute_path}"
            logger.warning("Entry %s: %s", decision.catalog_entry_id, message)
            error_details.append(f"Entry {decision.catalog_entry_id}: {message}")
            decision = decision.model_copy(
                update={"outcome": DecisionOutcome.ERROR, "rationale": message}
            )
        decisions.append(decision)

    updated_report = report.model_copy(
        update={"decisions": decisions, "error_details": error_details, **count_outcomes(decisions)}
    )
    return catalog.model_copy(update={"entries": entries}), updated_report


def write_report(report: ReconciliationReport, report_dir: Path) -> Path:
    """
    Serialize a report to its own uniquely named JSON file.

    Args:
        report: Report of the run
        report_dir: Directory for report files

    Returns:
        Path of the written report
    """
    report_path = report_path_for(report, report_dir)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_text(report_path, report.model_dump_json(by_alias=True, indent=2) + "\n")
    logger.info("Report saved: %s", report_path)
    return report_path


def commit(
    catalog_path: Path | str,
    catalog: Catalog,
    report: ReconciliationReport,
    fields: Optional[CatalogFieldsConfig] = None,
    backup_dir: Optional[Path] = None,
    report_dir: Optional[Path] = None,
    now: Optional[datetime] = None,
) -> Path:
    """
    Persist a reconciliation run.

    1. Copy the catalog file to a timestamped backup and verify the copy.
    2. Write the mutated catalog over the original, atomically.
    3. Write the report to ``report_path_for(report, report_dir)``.

    The catalog is not touched unless step 1 succeeded, so a verified backup
    exists before any destructive write.

    Args:
        catalog_path: Catalog file to overwrite
        catalog: Catalog holding the mutated entries
        report: Report of the run
        fields: Record field names
        backup_dir: Directory for backups, defaults to the catalog directory
        report_dir: Directory for reports, defaults to the catalog directory
        now: Timestamp for backup names and ``updatedAt`` stamps

    Returns:
        Path of the verified backup

    Raises:
        BackupError: If the backup cannot be written or verified
        CatalogWriteError: If the catalog cannot be written; the backup stays valid
        ReportWriteError: If the report cannot be written; the catalog is already replaced
    """
    catalog_path = Path(catalog_path)
    fields = fields or CatalogFieldsConfig()
    now = now or datetime.now(timezone.utc)

    backup_path = create_backup(catalog_path, backup_dir, now)

    catalog, report = recheck_matches(catalog, report, fields)
    report = report.model_copy(update={"backup_path": str(backup_path)})

    try:
        text = serialize_catalog(catalog, catalog.entries, fields, updated_at=now)
        _atomic_write_text(catalog_path, text)
    except (OSError, TypeError, ValueError) as e:
        raise CatalogWriteError(
            f"Failed to write catalog {catalog_path}: {e}. "
            f"Recover from backup {backup_path}"
        ) from e

    logger.info("Catalog written: %s (%d entries)", catalog_path, len(catalog.entries))

    try:
        write_report(report, Path(report_dir) if report_dir else catalog_path.parent)
    except OSError as e:
        raise ReportWriteError(
            f"Catalog written but the report could not be saved: {e}. "
            f"Previous catalog is in backup {backup_path}",
            backup_path,
        ) from e

    return backup_path


def _atomic_write_text(path: Path, text: str) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise
