"""Pydantic model for the per-run reconciliation report"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from image_reconciler.models.matching import (
    DecisionOutcome,
    DirectoryIssue,
    DuplicateFlag,
    IndexCollision,
    MatchDecision,
)


class ReconciliationReport(BaseModel):
    """
    Record of one engine run.

    Written once per run and never modified afterwards. The JSON form uses
    camelCase keys (``timestamp``, ``matched``, ``skipped``, ``errors``,
    ``duplicatesRemoved``, ``decisions``...).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "runId": "20250115T103000123456-3f2a9c1d",
                "timestamp": "2025-01-15T10:30:00.123456+00:00",
                "catalogPath": "data/products/products.json",
                "dryRun": False,
                "totalEntries": 2,
                "matched": 1,
                "skipped": 1,
                "unchanged": 0,
                "errors": 0,
                "duplicatesRemoved": 0,
                "decisions": [],
            }
        },
    )

    run_id: str = Field(..., description="Unique identifier of the run")
    timestamp: datetime = Field(..., description="Run start time (UTC)")
    catalog_path: str = Field(..., description="Catalog file the run operated on")
    dry_run: bool = Field(False)
    total_entries: int = Field(0, description="Entries processed by the matcher")
    matched: int = Field(0)
    skipped: int = Field(0)
    unchanged: int = Field(0)
    errors: int = Field(0)
    duplicates_removed: int = Field(0)
    decisions: List[MatchDecision] = Field(default_factory=list)
    duplicates: List[DuplicateFlag] = Field(default_factory=list)
    directory_errors: List[DirectoryIssue] = Field(default_factory=list)
    index_collisions: List[IndexCollision] = Field(default_factory=list)
    unused_images: List[str] = Field(
        default_factory=list, description="Indexed images no entry references"
    )
    error_details: List[str] = Field(default_factory=list)
    backup_path: Optional[str] = Field(None, description="Backup written before the commit")

    def summary_counts(self) -> dict:
        """Summary numbers keyed the same way as the JSON report"""
        return {
            "totalEntries": self.total_entries,
            "matched": self.matched,
            "skipped": self.skipped,
            "unchanged": self.unchanged,
            "errors": self.errors,
            "duplicatesRemoved": self.duplicates_removed,
        }


def count_outcomes(decisions: List[MatchDecision]) -> dict:
    """
    Count decisions per outcome.

    Args:
        decisions: Decisions in catalog order

    Returns:
        Dictionary with matched, skipped, unchanged and errors counts
    """
    counts = {"matched": 0, "skipped": 0, "unchanged": 0, "errors": 0}
    for decision in decisions:
        if decision.outcome == DecisionOutcome.MATCHED:
            counts["matched"] += 1
        elif decision.outcome == DecisionOutcome.SKIPPED:
            counts["skipped"] += 1
        elif decision.outcome == DecisionOutcome.UNCHANGED:
            counts["unchanged"] += 1
        else:
            counts["errors"] += 1
    return counts
