"""Helpers shared by the reconciliation workflow nodes"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from image_reconciler.catalog.resolver import ImageResolver
from image_reconciler.models.configs import ReconcilerConfig
from image_reconciler.utils.compute_content_hash import compute_content_hash


def build_resolver(config: ReconcilerConfig) -> ImageResolver:
    """Image reference resolver for the configured public roots"""
    return ImageResolver(config.public_roots, config.placeholder_pattern)


def new_run_id(catalog_path: str, image_dirs: Sequence[str], started_at: datetime) -> str:
    """
    Build a run identifier that sorts by start time.

    Args:
        catalog_path: Catalog file of the run
        image_dirs: Image directories of the run
        started_at: Run start time

    Returns:
        Identifier such as ``20250115T103000123456-3f2a9c1d``
    """
    digest = compute_content_hash(catalog_path, list(image_dirs), started_at.isoformat(), len=8)
    return f"{started_at.strftime('%Y%m%dT%H%M%S%f')}-{digest}"


def output_dir(configured: Optional[Path], catalog_path: str) -> Path:
    """Configured directory, or the catalog's own directory"""
    return Path(configured) if configured else Path(catalog_path).parent
