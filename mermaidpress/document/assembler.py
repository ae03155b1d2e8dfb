"""Wraps a raster image into a single-page PDF."""

from __future__ import annotations

import io
import logging

from reportlab.lib.pagesizes import landscape, portrait
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from mermaidpress.errors import InvalidDimensionsError
from mermaidpress.export.models import RasterImage

logger = logging.getLogger(__name__)


def page_size_for(width: int, height: int) -> tuple[float, float]:
    """Page size in points for a raster, 1pt per pixel.

    Landscape when wider than tall, portrait otherwise.
    """
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(width, height)
    size = (float(width), float(height))
    return landscape(size) if width > height else portrait(size)


def wrap_as_document(image: RasterImage) -> bytes:
    """Place the raster on one page that it fills exactly, origin at the corner."""
    page_w, page_h = page_size_for(image.width, image.height)

    buf = io.BytesIO()
    pdf = canvas.Canvas(buf, pagesize=(page_w, page_h), invariant=True)
    pdf.setTitle("diagram")
    pdf.drawImage(
        ImageReader(io.BytesIO(image.data)),
        0,
        0,
        width=page_w,
        height=page_h,
    )
    pdf.showPage()
    pdf.save()

    data = buf.getvalue()
    logger.debug("assembled %dx%d pt PDF (%d bytes)", page_w, page_h, len(data))
    return data
