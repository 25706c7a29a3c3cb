"""Unit tests for the sequential reconciler"""

import pytest

from image_reconciler.catalog.resolver import ImageResolver
from image_reconciler.matching.index import build_index
from image_reconciler.models.catalog import CatalogEntry
from image_reconciler.models.matching import DecisionOutcome, MatchTier
from image_reconciler.reconcile.reconciler import reconcile, unused_images


@pytest.fixture
def new_images(site_root, make_image):
    directory = site_root / "sitephoto" / "New images"
    make_image(directory, "Apple Cider Vinegar.jpg")
    make_image(directory, "Green Tea.png")
    make_image(directory, "Frozen Plantains.png")
    return directory


@pytest.fixture
def resolver(site_root):
    return ImageResolver([site_root])


class TestReconcile:
    """Test suite for reconcile()"""

    @pytest.mark.unit
    def test_broken_reference_is_repaired(self, new_images, resolver):
        index = build_index([new_images])
        catalog = [
            CatalogEntry(id="5", name="Apple Cider Vinegar", image_refs=["/images/products/G12.png"])
        ]

        decisions, entries = reconcile(catalog, index, resolver)

        assert decisions[0].outcome == DecisionOutcome.MATCHED
        assert decisions[0].image_ref == "/sitephoto/New images/Apple Cider Vinegar.jpg"
        assert entries[0].primary_image == "/sitephoto/New images/Apple Cider Vinegar.jpg"
        assert entries[0].updated_by == "image-reconciler"
        # Input entries are left untouched
        assert catalog[0].primary_image == "/images/products/G12.png"
        assert catalog[0].updated_by is None

    @pytest.mark.unit
    def test_resolving_image_is_never_downgraded(self, new_images, site_root, make_image, resolver):
        make_image(site_root / "sitephoto" / "Old", "acv-bottle.png")
        index = build_index([new_images])
        catalog = [
            CatalogEntry(id="5", name="Apple Cider Vinegar", image_refs=["/sitephoto/Old/acv-bottle.png"])
        ]

        decisions, entries = reconcile(catalog, index, resolver)

        assert decisions[0].outcome == DecisionOutcome.UNCHANGED
        assert entries[0].image_refs == ["/sitephoto/Old/acv-bottle.png"]
        assert entries[0].updated_by is None

    @pytest.mark.unit
    def test_second_run_makes_no_changes(self, new_images, resolver):
        index = build_index([new_images])
        catalog = [
            CatalogEntry(id="1", name="Apple Cider Vinegar", image_refs=["/missing/a.png"]),
            CatalogEntry(id="2", name="Green Tea"),
            CatalogEntry(id="3", name="Xyzzy Snack Bar", image_refs=["/missing/b.png"]),
        ]

        first_decisions, first_entries = reconcile(catalog, index, resolver)
        second_decisions, second_entries = reconcile(first_entries, index, resolver)

        assert [d.outcome for d in first_decisions] == [
            DecisionOutcome.MATCHED,
            DecisionOutcome.MATCHED,
            DecisionOutcome.SKIPPED,
        ]
        assert all(d.outcome != DecisionOutcome.MATCHED for d in second_decisions)
        assert [e.image_refs for e in second_entries] == [e.image_refs for e in first_entries]

    @pytest.mark.unit
    def test_image_is_never_claimed_twice(self, new_images, resolver):
        index = build_index([new_images])
        catalog = [
            CatalogEntry(id="1", name="Green Tea"),
            CatalogEntry(id="2", name="Green-Tea"),
        ]

        decisions, _ = reconcile(catalog, index, resolver)

        assert decisions[0].outcome == DecisionOutcome.MATCHED
        assert decisions[1].outcome == DecisionOutcome.SKIPPED
        assert "already claimed" in decisions[1].rationale
        chosen = [d.chosen_image for d in decisions if d.is_match]
        assert len(chosen) == len(set(chosen))

    @pytest.mark.unit
    def test_images_in_use_are_claimed_up_front(self, new_images, resolver):
        index = build_index([new_images])
        catalog = [
            CatalogEntry(id="1", name="Green Tea", image_refs=["/missing/tea.png"]),
            CatalogEntry(id="2", name="Tea Bags", image_refs=["/sitephoto/New images/Green Tea.png"]),
        ]

        decisions, entries = reconcile(catalog, index, resolver)

        assert decisions[0].outcome == DecisionOutcome.SKIPPED
        assert decisions[1].outcome == DecisionOutcome.UNCHANGED
        assert entries[0].image_refs == ["/missing/tea.png"]

    @pytest.mark.unit
    def test_nameless_entry_keeps_its_image_claimed(self, new_images, resolver):
        index = build_index([new_images])
        catalog = [
            CatalogEntry(
                id="1",
                name=None,
                position=0,
                image_refs=["/sitephoto/New images/Apple Cider Vinegar.jpg"],
            ),
            CatalogEntry(
                id="2",
                name="Apple Cider Vinegar",
                position=1,
                image_refs=["/images/products/G12.png"],
            ),
        ]

        decisions, entries = reconcile(catalog, index, resolver)

        assert decisions[0].outcome == DecisionOutcome.ERROR
        assert decisions[1].outcome == DecisionOutcome.SKIPPED
        assert "already claimed" in decisions[1].rationale
        assert entries[1].image_refs == ["/images/products/G12.png"]

    @pytest.mark.unit
    def test_missing_name_is_an_error(self, new_images, resolver):
        index = build_index([new_images])
        catalog = [CatalogEntry(id="9", name=None, position=0)]

        decisions, _ = reconcile(catalog, index, resolver)

        assert decisions[0].outcome == DecisionOutcome.ERROR
        assert decisions[0].tier == MatchTier.NONE
        assert "name" in decisions[0].rationale

    @pytest.mark.unit
    def test_placeholder_is_treated_as_missing(self, new_images, site_root, make_image):
        make_image(site_root / "images" / "products", "G12.png")
        resolver = ImageResolver([site_root], placeholder_pattern=r"/images/products/[Gg]\d+[a-z]*\.png$")
        index = build_index([new_images])
        catalog = [
            CatalogEntry(id="5", name="Apple Cider Vinegar", image_refs=["/images/products/G12.png"])
        ]

        decisions, _ = reconcile(catalog, index, resolver)

        assert decisions[0].outcome == DecisionOutcome.MATCHED
        assert decisions[0].previous_image == "/images/products/G12.png"

    @pytest.mark.unit
    def test_unused_images(self, new_images, resolver):
        index = build_index([new_images])
        catalog = [CatalogEntry(id="1", name="Green Tea")]

        _, entries = reconcile(catalog, index, resolver)
        unused = unused_images(index, entries, resolver)

        assert sorted(p.rsplit("/", 1)[-1] for p in unused) == [
            "Apple Cider Vinegar.jpg",
            "Frozen Plantains.png",
        ]
