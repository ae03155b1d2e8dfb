"""Tests for wrapping a raster into a single-page PDF."""

import re

import pytest

from conftest import make_png
from mermaidpress.document.assembler import page_size_for, wrap_as_document
from mermaidpress.errors import InvalidDimensionsError
from mermaidpress.export.models import RasterImage

_MEDIABOX_RE = re.compile(rb"/MediaBox\s*\[\s*0\s+0\s+([\d.]+)\s+([\d.]+)\s*\]")


def _mediabox(pdf: bytes) -> tuple[float, float]:
    m = _MEDIABOX_RE.search(pdf)
    assert m, "no MediaBox in PDF"
    return float(m.group(1)), float(m.group(2))


class TestPageSize:
    def test_landscape_when_wider(self):
        assert page_size_for(300, 100) == (300.0, 100.0)

    def test_portrait_when_taller(self):
        assert page_size_for(100, 300) == (100.0, 300.0)

    def test_square(self):
        assert page_size_for(50, 50) == (50.0, 50.0)

    def test_zero_rejected(self):
        with pytest.raises(InvalidDimensionsError):
            page_size_for(0, 10)


class TestWrapAsDocument:
    def test_page_matches_raster(self):
        image = RasterImage(width=240, height=120, data=make_png(240, 120))
        pdf = wrap_as_document(image)
        assert pdf.startswith(b"%PDF")
        assert _mediabox(pdf) == (240.0, 120.0)

    def test_single_page(self):
        image = RasterImage(width=80, height=200, data=make_png(80, 200))
        pdf = wrap_as_document(image)
        assert _mediabox(pdf) == (80.0, 200.0)
        assert len(re.findall(rb"/Type\s*/Page\b", pdf)) == 1

    def test_deterministic_output(self):
        image = RasterImage(width=40, height=20, data=make_png(40, 20, "red"))
        assert wrap_as_document(image) == wrap_as_document(image)
