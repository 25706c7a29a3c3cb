"""Shared fixtures: real image directories and catalog files under tmp_path"""

import json
from pathlib import Path

import pytest

# Minimal PNG signature, enough for the scanner which only looks at names
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture
def site_root(tmp_path):
    """Public web root holding the sitephoto tree"""
    root = tmp_path / "public"
    root.mkdir()
    return root


@pytest.fixture
def make_image():
    """Factory creating an image file, parents included"""

    def _make_image(directory: Path, filename: str, content: bytes = PNG_BYTES) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        path.write_bytes(content)
        return path

    return _make_image


@pytest.fixture
def write_catalog(tmp_path):
    """Factory writing a catalog JSON file and returning its path"""

    def _write_catalog(records, name: str = "products.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(records, indent=2), encoding="utf-8")
        return path

    return _write_catalog
