"""Unit tests for duplicate entry detection"""

import pytest

from image_reconciler.catalog.resolver import ImageResolver
from image_reconciler.models.catalog import CatalogEntry
from image_reconciler.reconcile.duplicates import (
    canonical_sort_key,
    find_duplicates,
    remove_duplicates,
)

AUTO_TAGS = frozenset({"importer-bot", "unused-images-integrator"})


class TestCanonicalSelection:
    """Test suite for the canonical ordering"""

    @pytest.mark.unit
    def test_manual_entry_beats_auto_generated(self):
        entries = [
            CatalogEntry(id="10", name="Frozen Plantains", created_by="importer-bot", position=0),
            CatalogEntry(id="3", name="Frozen Plantains", created_by="manual-entry", position=1),
        ]

        flags = find_duplicates(entries, auto_generated_tags=AUTO_TAGS)

        assert len(flags) == 1
        assert flags[0].duplicate_id == "10"
        assert flags[0].canonical_id == "3"
        assert flags[0].reason == "name"
        assert flags[0].group_key == "frozen plantains"

    @pytest.mark.unit
    def test_auto_generated_loses_even_with_smaller_id(self):
        entries = [
            CatalogEntry(id="1", name="Frozen Plantains", created_by="importer-bot", position=0),
            CatalogEntry(id="30", name="frozen  plantains!", created_by="manual-entry", position=1),
        ]

        flags = find_duplicates(entries, auto_generated_tags=AUTO_TAGS)

        assert flags[0].canonical_id == "30"

    @pytest.mark.unit
    def test_ids_compare_numerically(self):
        entries = [
            CatalogEntry(id="10", name="Rice", position=0),
            CatalogEntry(id="9", name="Rice", position=1),
        ]

        flags = find_duplicates(entries)

        assert flags[0].canonical_id == "9"

    @pytest.mark.unit
    def test_numeric_ids_come_before_other_ids(self):
        a = CatalogEntry(id="abc", name="Rice", position=0)
        b = CatalogEntry(id="12", name="Rice", position=1)

        assert canonical_sort_key(b, AUTO_TAGS) < canonical_sort_key(a, AUTO_TAGS)
        assert find_duplicates([a, b])[0].canonical_id == "12"

    @pytest.mark.unit
    def test_position_settles_identical_keys(self):
        entries = [
            CatalogEntry(id=None, name="Rice", position=0),
            CatalogEntry(id=None, name="Rice", position=1),
        ]

        flags = find_duplicates(entries)

        assert flags[0].duplicate_id == "#1"
        assert flags[0].canonical_id == "#0"


class TestImageDuplicates:
    """Test suite for duplicates sharing one image file"""

    @pytest.mark.unit
    def test_same_image_different_names(self, site_root, make_image):
        make_image(site_root / "sitephoto", "plantain.png")
        resolver = ImageResolver([site_root])
        entries = [
            CatalogEntry(id="4", name="Plantains Frozen", image_refs=["/sitephoto/plantain.png"], position=0),
            CatalogEntry(id="2", name="Green Plantain", image_refs=["/sitephoto/plantain.png"], position=1),
        ]

        flags = find_duplicates(entries, resolver)

        assert len(flags) == 1
        assert flags[0].reason == "image"
        assert flags[0].duplicate_id == "4"
        assert flags[0].canonical_id == "2"

    @pytest.mark.unit
    def test_broken_images_are_not_grouped(self, site_root):
        resolver = ImageResolver([site_root])
        entries = [
            CatalogEntry(id="1", name="Apples", image_refs=["/missing.png"], position=0),
            CatalogEntry(id="2", name="Pears", image_refs=["/missing.png"], position=1),
        ]

        assert find_duplicates(entries, resolver) == []

    @pytest.mark.unit
    def test_flags_point_at_surviving_entries(self, site_root, make_image):
        make_image(site_root, "shared.png")
        resolver = ImageResolver([site_root])
        entries = [
            CatalogEntry(id="5", name="Mango", image_refs=["/shared.png"], position=0),
            CatalogEntry(id="6", name="Mango", position=1),
            CatalogEntry(id="1", name="Mango Slices", image_refs=["/shared.png"], position=2),
        ]

        flags = find_duplicates(entries, resolver)
        survivors = remove_duplicates(entries, flags)

        assert [e.id for e in survivors] == ["1"]
        assert {flag.duplicate_id: flag.canonical_id for flag in flags} == {"6": "1", "5": "1"}


class TestRemoveDuplicates:
    """Test suite for remove_duplicates()"""

    @pytest.mark.unit
    def test_keeps_catalog_order(self):
        entries = [
            CatalogEntry(id="10", name="Frozen Plantains", created_by="importer-bot", position=0),
            CatalogEntry(id="7", name="Coffee", position=1),
            CatalogEntry(id="3", name="Frozen Plantains", position=2),
        ]

        survivors = remove_duplicates(entries, find_duplicates(entries, auto_generated_tags=AUTO_TAGS))

        assert [e.id for e in survivors] == ["7", "3"]

    @pytest.mark.unit
    def test_removal_is_by_position_not_id(self):
        entries = [
            CatalogEntry(id="8", name="Tea", position=0),
            CatalogEntry(id="8", name="Tea", position=1),
        ]

        survivors = remove_duplicates(entries, find_duplicates(entries))

        assert [e.position for e in survivors] == [0]
