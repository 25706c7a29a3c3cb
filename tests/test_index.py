"""Unit tests for the candidate image index"""

import pytest

from image_reconciler.matching.index import ImageIndex, build_index, scan_directory


class TestScanDirectory:
    """Test suite for scanning a single directory"""

    @pytest.mark.unit
    def test_scan_filters_and_sorts(self, tmp_path, make_image):
        directory = tmp_path / "New images"
        make_image(directory, "Zucchini.png")
        make_image(directory, "Apple Cider Vinegar.jpg")
        make_image(directory, "Banana.WEBP")
        (directory / "notes.txt").write_text("not an image")

        descriptors, issue = scan_directory(directory)

        assert issue is None
        assert [d.filename for d in descriptors] == [
            "Apple Cider Vinegar.jpg",
            "Banana.WEBP",
            "Zucchini.png",
        ]
        assert all(d.category == "New images" for d in descriptors)
        assert descriptors[1].extension == ".webp"
        assert descriptors[1].stem == "Banana"
        assert descriptors[0].absolute_path == (directory / "Apple Cider Vinegar.jpg").resolve()

    @pytest.mark.unit
    def test_missing_directory_reports_issue(self, tmp_path):
        descriptors, issue = scan_directory(tmp_path / "does-not-exist")

        assert descriptors == []
        assert issue is not None
        assert "does not exist" in issue.reason

    @pytest.mark.unit
    def test_recursive_scan_uses_parent_directory_as_category(self, tmp_path, make_image):
        root = tmp_path / "sitephoto"
        make_image(root / "Coffee", "Dark Roast.png")
        make_image(root / "Candy", "Gummy Bears.png")
        make_image(root, "Loose.png")

        flat, _ = scan_directory(root)
        deep, _ = scan_directory(root, recursive=True)

        assert [d.filename for d in flat] == ["Loose.png"]
        assert {(d.category, d.filename) for d in deep} == {
            ("Coffee", "Dark Roast.png"),
            ("Candy", "Gummy Bears.png"),
            ("sitephoto", "Loose.png"),
        }


class TestBuildIndex:
    """Test suite for building and querying the index"""

    @pytest.mark.unit
    def test_missing_directory_does_not_abort(self, tmp_path, make_image):
        good = tmp_path / "New images"
        make_image(good, "Apple Cider Vinegar.jpg")

        index = build_index([tmp_path / "missing", good])

        assert len(index) == 1
        assert len(index.directory_errors) == 1
        assert index.directory_errors[0].directory == str(tmp_path / "missing")

    @pytest.mark.unit
    def test_exact_lookup_keys(self, tmp_path, make_image):
        make_image(tmp_path / "Snacks", "Potato_Chips-Original.png")
        index = build_index([tmp_path / "Snacks"])

        by_stem = index.exact_lookup("potato chips original")
        by_filename = index.exact_lookup("potato_chips-original.png")

        assert by_stem is not None
        assert by_stem == by_filename
        assert index.exact_lookup("") is None
        assert index.exact_lookup("unknown") is None

    @pytest.mark.unit
    def test_first_seen_wins_on_collision(self, tmp_path, make_image):
        first = make_image(tmp_path / "New images", "Coffee.png")
        make_image(tmp_path / "Old images", "Coffee.png")

        index = build_index([tmp_path / "New images", tmp_path / "Old images"])

        assert len(index) == 2
        assert index.exact_lookup("coffee").absolute_path == first.resolve()
        assert index.collisions
        assert index.collisions[0].kept == str(first.resolve())

    @pytest.mark.unit
    def test_merge_order_follows_directory_order(self, tmp_path, make_image):
        make_image(tmp_path / "b", "One.png")
        make_image(tmp_path / "a", "Two.png")

        index = build_index([tmp_path / "b", tmp_path / "a"], max_workers=2)

        assert [d.filename for d in index.all_candidates()] == ["One.png", "Two.png"]

    @pytest.mark.unit
    def test_all_candidates_is_restartable(self, tmp_path, make_image):
        make_image(tmp_path / "x", "One.png")
        make_image(tmp_path / "x", "Two.png")
        index = build_index([tmp_path / "x"])

        assert list(index.all_candidates()) == list(index.all_candidates())

    @pytest.mark.unit
    def test_candidates_in_categories_is_case_insensitive(self, tmp_path, make_image):
        make_image(tmp_path / "Coffee", "Dark Roast.png")
        make_image(tmp_path / "Candy", "Gummy Bears.png")
        index = build_index([tmp_path / "Coffee", tmp_path / "Candy"])

        found = index.candidates_in_categories(["coffee"])

        assert [d.filename for d in found] == ["Dark Roast.png"]

    @pytest.mark.unit
    def test_descriptor_for_path(self, tmp_path, make_image):
        path = make_image(tmp_path / "x", "One.png")
        index = build_index([tmp_path / "x"])

        descriptor = index.descriptor_for_path(path)

        assert descriptor is not None
        assert descriptor in index
        assert index.descriptor_for_path(tmp_path / "x" / "Other.png") is None

    @pytest.mark.unit
    def test_empty_index(self):
        index = ImageIndex()

        assert len(index) == 0
        assert list(index.all_candidates()) == []
