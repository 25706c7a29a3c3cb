"""Duplicate catalog entry detection"""

import logging
from typing import AbstractSet, Dict, List, Optional, Sequence, Tuple

from image_reconciler.catalog.resolver import ImageResolver
from image_reconciler.matching.normalizer import normalize
from image_reconciler.models.catalog import CatalogEntry
from image_reconciler.models.matching import DuplicateFlag

logger = logging.getLogger(__name__)


def canonical_sort_key(
    entry: CatalogEntry, auto_generated_tags: AbstractSet[str]
) -> Tuple[int, int, int, str, int]:
    """
    Sort key ranking entries for canonical selection, best first.

    Entries not created by an auto-generated provenance tag win; then the
    numerically smallest id; ids that are not integers come after numeric
    ones and compare as strings; the catalog position settles the rest, so
    every pair of entries has a defined winner.
    """
    is_auto = 1 if entry.created_by in auto_generated_tags else 0

    id_text = entry.id or ""
    try:
        return (is_auto, 0, int(id_text), "", entry.position)
    except ValueError:
        return (is_auto, 1, 0, id_text, entry.position)


def find_duplicates(
    entries: Sequence[CatalogEntry],
    resolver: Optional[ImageResolver] = None,
    auto_generated_tags: AbstractSet[str] = frozenset(),
) -> List[DuplicateFlag]:
    """
    Flag duplicate catalog entries.

    Entries are grouped by normalized name and, independently, by the file
    their primary image resolves to. Each group of two or more keeps one
    canonical entry (see ``canonical_sort_key``) and flags the rest. An
    entry already flagged by the name pass is left out of the image pass,
    and every flag points at an entry that survives both passes.

    Args:
        entries: Catalog entries in catalog order
        resolver: Image reference resolver
        auto_generated_tags: Provenance tags of machine-created entries

    Returns:
        Duplicate flags in the order they were found
    """
    resolver = resolver or ImageResolver()

    name_groups: Dict[str, List[CatalogEntry]] = {}
    image_groups: Dict[str, List[CatalogEntry]] = {}

    for entry in entries:
        key = normalize(entry.name)
        if key:
            name_groups.setdefault(key, []).append(entry)

        resolved = resolver.resolve(entry.primary_image)
        if resolved is not None:
            image_groups.setdefault(str(resolved), []).append(entry)

    flags: Dict[int, DuplicateFlag] = {}
    canonical_of: Dict[int, CatalogEntry] = {}

    def flag_group(group: List[CatalogEntry], reason: str, group_key: str) -> None:
        members = [entry for entry in group if entry.position not in flags]
        if len(members) < 2:
            return

        ranked = sorted(members, key=lambda e: canonical_sort_key(e, auto_generated_tags))
        canonical = ranked[0]
        for duplicate in ranked[1:]:
            canonical_of[duplicate.position] = canonical
            flags[duplicate.position] = DuplicateFlag(
                duplicate_id=duplicate.label,
                duplicate_position=duplicate.position,
                duplicate_name=duplicate.name,
                canonical_id=canonical.label,
                canonical_name=canonical.name,
                reason=reason,
                group_key=group_key,
            )

    for key, group in name_groups.items():
        flag_group(group, "name", key)
    for key, group in image_groups.items():
        flag_group(group, "image", key)

    # A name-pass canonical can be flagged later by the image pass
    for position, flag in flags.items():
        survivor = canonical_of[position]
        while survivor.position in canonical_of:
            survivor = canonical_of[survivor.position]
        if survivor.label != flag.canonical_id:
            flags[position] = flag.model_copy(
                update={"canonical_id": survivor.label, "canonical_name": survivor.name}
            )

    if flags:
        logger.info("Flagged %d duplicate entries", len(flags))

    return list(flags.values())


def remove_duplicates(
    entries: Sequence[CatalogEntry], flags: Sequence[DuplicateFlag]
) -> List[CatalogEntry]:
    """
    Drop flagged entries, keeping catalog order.

    Args:
        entries: Catalog entries
        flags: Output of ``find_duplicates``

    Returns:
        Entries that are not flagged as duplicates
    """
    removed = {flag.duplicate_position for flag in flags}
    return [entry for entry in entries if entry.position not in removed]
