"""LangGraph workflow state models"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from image_reconciler.matching.index import ImageIndex
from image_reconciler.models.catalog import Catalog, CatalogEntry
from image_reconciler.models.configs import ReconcilerConfig
from image_reconciler.models.matching import DuplicateFlag, MatchDecision
from image_reconciler.models.report import ReconciliationReport


class ReconcileState(BaseModel):
    """
    State for the reconciliation workflow.

    This Pydantic model is used by LangGraph to track state across workflow nodes.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    # Inputs
    catalog_path: str = Field(..., description="Catalog JSON file to reconcile")
    image_dirs: List[str] = Field(default_factory=list, description="Image directories to scan")
    dry_run: bool = Field(False, description="Report only, never touch the catalog")
    settings: ReconcilerConfig = Field(default_factory=ReconcilerConfig)
    excel_path: Optional[str] = Field(None, description="Optional Excel mirror of the report")
    show_progress: bool = Field(False)

    # Run identity
    run_id: str = Field("", description="Unique identifier of the run")
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Processing results
    catalog: Optional[Catalog] = None
    index: Optional[ImageIndex] = None
    duplicates: List[DuplicateFlag] = Field(default_factory=list)
    entries: List[CatalogEntry] = Field(
        default_factory=list, description="Entries after duplicate removal, then after matching"
    )
    decisions: List[MatchDecision] = Field(default_factory=list)

    # Output
    report: Optional[ReconciliationReport] = None
    report_path: Optional[str] = None
    backup_path: Optional[str] = None

    # Non-fatal errors encountered during processing
    errors: List[str] = Field(default_factory=list)
