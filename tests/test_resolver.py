"""Unit tests for image reference resolution"""

import pytest

from image_reconciler.catalog.resolver import ImageResolver
from image_reconciler.matching.index import build_index


class TestImageResolver:
    """Test suite for ImageResolver"""

    @pytest.mark.unit
    def test_site_relative_reference(self, site_root, make_image):
        path = make_image(site_root / "sitephoto" / "New images", "Green Tea.png")
        resolver = ImageResolver([site_root])

        assert resolver.resolve("/sitephoto/New images/Green Tea.png") == path.resolve()
        assert resolver.resolves("sitephoto/New images/Green Tea.png")

    @pytest.mark.unit
    def test_roots_are_tried_in_order(self, tmp_path, make_image):
        second = make_image(tmp_path / "b" / "img", "x.png")
        resolver = ImageResolver([tmp_path / "a", tmp_path / "b"])

        assert resolver.resolve("/img/x.png") == second.resolve()

    @pytest.mark.unit
    def test_absolute_path(self, tmp_path, make_image):
        path = make_image(tmp_path / "elsewhere", "x.png")
        resolver = ImageResolver([tmp_path / "public"])

        assert resolver.resolve(str(path)) == path.resolve()

    @pytest.mark.unit
    @pytest.mark.parametrize("ref", [None, "", "   ", "/sitephoto/missing.png"])
    def test_unresolvable_references(self, site_root, ref):
        assert ImageResolver([site_root]).resolve(ref) is None

    @pytest.mark.unit
    def test_placeholder_never_resolves(self, site_root, make_image):
        make_image(site_root / "images" / "products", "G12.png")
        make_image(site_root / "images" / "products", "apple.png")
        resolver = ImageResolver([site_root], placeholder_pattern=r"/images/products/[Gg]\d+[a-z]*\.png$")

        assert resolver.is_placeholder("/images/products/G12.png")
        assert not resolver.resolves("/images/products/G12.png")
        assert resolver.resolves("/images/products/apple.png")

    @pytest.mark.unit
    def test_placeholder_check_disabled_by_default(self, site_root, make_image):
        make_image(site_root / "images" / "products", "G12.png")

        assert ImageResolver([site_root]).resolves("/images/products/G12.png")

    @pytest.mark.unit
    def test_to_ref(self, tmp_path, site_root, make_image):
        make_image(site_root / "sitephoto" / "New images", "Green Tea.png")
        outside = make_image(tmp_path / "outside", "Rice.png")
        index = build_index([site_root / "sitephoto" / "New images", tmp_path / "outside"])
        resolver = ImageResolver([site_root])

        inside_ref = resolver.to_ref(index.exact_lookup("green tea"))
        outside_ref = resolver.to_ref(index.exact_lookup("rice"))

        assert inside_ref == "/sitephoto/New images/Green Tea.png"
        assert outside_ref == outside.resolve().as_posix()
        assert resolver.resolve(inside_ref) is not None
