"""LangGraph workflow graph construction"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from image_reconciler.models.configs import ReconcilerConfig
from image_reconciler.models.workflow import ReconcileState
from image_reconciler.workflow.nodes.deduplication import deduplicate
from image_reconciler.workflow.nodes.loading import load_catalog
from image_reconciler.workflow.nodes.matching import match_images
from image_reconciler.workflow.nodes.persistence import commit
from image_reconciler.workflow.nodes.reporting import build_report, dry_run_report, export_excel
from image_reconciler.workflow.nodes.scanning import scan_images


def create_workflow_graph(dry_run: bool = False) -> CompiledStateGraph:
    """
    Create the image reconciliation workflow graph.

    Workflow:
    1. Load catalog: Read the catalog JSON file
    2. Scan images: Build the candidate index from the image directories
    3. Deduplicate: Flag and drop duplicate entries
    4. Match images: Reconcile entries against the index
    5. Build report: Assemble counts and decisions
    6. Commit (or dry-run report): Back up and write, or only write the report
    7. Export Excel: Optional workbook mirror of the report

    Args:
        dry_run: Whether to skip the backup and catalog write

    Returns:
        Compiled StateGraph ready for execution
    """
    # Create state graph
    workflow = StateGraph(ReconcileState)

    # Add nodes
    workflow.add_node("load_catalog", load_catalog)
    workflow.add_node("scan_images", scan_images)
    workflow.add_node("deduplicate", deduplicate)
    workflow.add_node("match_images", match_images)
    workflow.add_node("build_report", build_report)
    workflow.add_node("export_excel", export_excel)

    # Define edges
    workflow.add_edge("load_catalog", "scan_images")
    workflow.add_edge("scan_images", "deduplicate")
    workflow.add_edge("deduplicate", "match_images")
    workflow.add_edge("match_images", "build_report")

    if dry_run:
        # Dry run: build_report -> dry_run_report -> export_excel
        workflow.add_node("dry_run_report", dry_run_report)
        workflow.add_edge("build_report", "dry_run_report")
        workflow.add_edge("dry_run_report", "export_excel")
    else:
        # Commit: build_report -> commit -> export_excel
        workflow.add_node("commit", commit)
        workflow.add_edge("build_report", "commit")
        workflow.add_edge("commit", "export_excel")

    workflow.add_edge("export_excel", END)

    # Set entry point
    workflow.set_entry_point("load_catalog")

    # Compile and return
    return workflow.compile()


def run_reconciliation(
    catalog_path: Path | str,
    image_dirs: Sequence[Path | str],
    config: Optional[ReconcilerConfig] = None,
    dry_run: bool = False,
    excel_path: Optional[Path | str] = None,
    show_progress: bool = False,
    started_at: Optional[datetime] = None,
) -> ReconcileState:
    """
    Execute the complete reconciliation workflow.

    Args:
        catalog_path: Catalog JSON file
        image_dirs: Image directories to scan, in priority order
        config: Reconciler configuration, defaults when None
        dry_run: Whether to leave the catalog untouched
        excel_path: Where to write the Excel mirror of the report
        show_progress: Show tqdm progress bars
        started_at: Run start time, defaults to now

    Returns:
        Final workflow state with results

    Raises:
        FileNotFoundError: If the catalog file doesn't exist
        ValueError: If the catalog cannot be parsed
        BackupError: If the backup cannot be written or verified
        CatalogWriteError: If the catalog cannot be written
    """
    # Initialize state
    initial_state = ReconcileState(
        catalog_path=str(catalog_path),
        image_dirs=[str(directory) for directory in image_dirs],
        dry_run=dry_run,
        settings=config or ReconcilerConfig(),
        excel_path=str(excel_path) if excel_path else None,
        show_progress=show_progress,
        started_at=started_at or datetime.now(timezone.utc),
    )

    # Create and run workflow
    workflow_graph = create_workflow_graph(dry_run=dry_run)
    result = workflow_graph.invoke(initial_state)
    final_state = ReconcileState.model_validate(result)

    return final_state
