"""Sequential reconciliation of catalog entries against the image index"""

import logging
from typing import List, Optional, Sequence, Set, Tuple

from tqdm import tqdm

from image_reconciler.catalog.resolver import ImageResolver
from image_reconciler.matching.index import ImageIndex
from image_reconciler.matching.matcher import match_entry
from image_reconciler.models.catalog import CatalogEntry, ImageDescriptor
from image_reconciler.models.configs import MatchingConfig
from image_reconciler.models.matching import DecisionOutcome, MatchDecision

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TAG = "image-reconciler"


def reconcile(
    catalog: Sequence[CatalogEntry],
    index: ImageIndex,
    resolver: Optional[ImageResolver] = None,
    settings: Optional[MatchingConfig] = None,
    tool_tag: str = DEFAULT_TOOL_TAG,
    show_progress: bool = False,
) -> Tuple[List[MatchDecision], List[CatalogEntry]]:
    """
    Apply image matches to a catalog.

    Entries are processed one at a time in catalog order. An entry whose
    primary image already resolves is left untouched, so running the
    reconciler twice yields no new matches the second time. Images already
    referenced by resolving entries are claimed up front and an image is
    never handed to two entries.

    The input entries are not modified; mutated copies are returned.

    Args:
        catalog: Entries in catalog order
        index: Candidate image index
        resolver: Image reference resolver
        settings: Matching thresholds and keyword table
        tool_tag: Provenance tag stamped on updated entries
        show_progress: Show a tqdm progress bar

    Returns:
        Tuple of (decisions in catalog order, mutated entries)
    """
    resolver = resolver or ImageResolver()
    settings = settings or MatchingConfig()

    entries = [entry.model_copy(deep=True) for entry in catalog]
    claimed = _preclaim_resolved_images(entries, index, resolver)

    decisions: List[MatchDecision] = []

    for entry in tqdm(entries, desc="Matching images", unit="entry", disable=not show_progress):
        if entry.name is None:
            decisions.append(
                MatchDecision(
                    catalog_entry_id=entry.label,
                    entry_position=entry.position,
                    entry_name=None,
                    previous_image=entry.primary_image,
                    rationale="Missing required field 'name'",
                    outcome=DecisionOutcome.ERROR,
                )
            )
            logger.warning("Entry %s has no name, skipping", entry.label)
            continue

        if resolver.resolves(entry.primary_image):
            decisions.append(
                MatchDecision(
                    catalog_entry_id=entry.label,
                    entry_position=entry.position,
                    entry_name=entry.name,
                    image_ref=entry.primary_image,
                    previous_image=entry.primary_image,
                    rationale="Primary image already resolves",
                    outcome=DecisionOutcome.UNCHANGED,
                )
            )
            continue

        decision = match_entry(entry, index, claimed, settings)

        if decision.chosen_image is None:
            logger.debug("No image for %s (%s): %s", entry.label, entry.name, decision.rationale)
            decisions.append(decision)
            continue

        image_ref = resolver.to_ref(decision.chosen_image)
        claimed.add(decision.chosen_image)
        entry.image_refs = [image_ref]
        entry.updated_by = tool_tag

        decisions.append(decision.model_copy(update={"image_ref": image_ref}))
        logger.info(
            "Matched %s (%s) -> %s [%s %.2f]",
            entry.label,
            entry.name,
            image_ref,
            decision.tier.value,
            decision.score,
        )

    return decisions, entries


def _preclaim_resolved_images(
    entries: Sequence[CatalogEntry], index: ImageIndex, resolver: ImageResolver
) -> Set[ImageDescriptor]:
    claimed: Set[ImageDescriptor] = set()
    # Nameless entries still own the image they point at
    for entry in entries:
        resolved = resolver.resolve(entry.primary_image)
        if resolved is None:
            continue
        descriptor = index.descriptor_for_path(resolved)
        if descriptor is not None:
            claimed.add(descriptor)
    return claimed


def unused_images(index: ImageIndex, entries: Sequence[CatalogEntry], resolver: ImageResolver) -> List[str]:
    """
    List indexed images that no entry's primary image points at.

    Args:
        index: Candidate image index
        entries: Catalog entries after reconciliation
        resolver: Image reference resolver

    Returns:
        Absolute paths of unused images, in scan order
    """
    used = set()
    for entry in entries:
        resolved = resolver.resolve(entry.primary_image)
        if resolved is not None:
            used.add(resolved)

    return [
        str(descriptor.absolute_path)
        for descriptor in index.all_candidates()
        if descriptor.absolute_path not in used
    ]

