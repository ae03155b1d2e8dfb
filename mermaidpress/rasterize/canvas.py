"""In-process rasterizer: SVG markup → PNG without network or subprocess."""

from __future__ import annotations

import asyncio
import io
import logging
import math
import re

import cairosvg
from PIL import Image, ImageColor

from mermaidpress.errors import EmptySourceError, InvalidDimensionsError
from mermaidpress.export.models import ExportParameters, RasterImage, RenderedSource
from mermaidpress.export.svg import normalize_markup, parse_svg

logger = logging.getLogger(__name__)

_LENGTH_RE = re.compile(r"^\s*([0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?)\s*(px)?\s*$")


def _parse_length(value: str | None) -> float | None:
    """Parse an SVG length in user units or px. Percentages and other units are unmeasurable."""
    if not value:
        return None
    m = _LENGTH_RE.match(value)
    if not m:
        return None
    return float(m.group(1))


def measure_svg(svg: str) -> tuple[int, int]:
    """Return the natural pixel size of an SVG, rounded up to whole pixels.

    The viewBox wins over width/height, matching how the preview pane sizes
    the diagram. Raises InvalidDimensionsError when the size cannot be
    measured or is not strictly positive, and InternalFailureError when the
    markup has no <svg> root.
    """
    root = parse_svg(svg)

    width = height = None
    view_box = root.get("viewBox")
    if view_box:
        parts = re.split(r"[\s,]+", view_box.strip())
        if len(parts) == 4:
            try:
                width, height = float(parts[2]), float(parts[3])
            except ValueError:
                width = height = None
    if width is None or height is None:
        width = _parse_length(root.get("width"))
        height = _parse_length(root.get("height"))

    if width is None or height is None or not (math.isfinite(width) and math.isfinite(height)):
        raise InvalidDimensionsError(width, height, "SVG has no measurable size")
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(width, height)
    return math.ceil(width), math.ceil(height)


def scaled_size(width: int, height: int, scale: float) -> tuple[int, int]:
    """Apply the pixel-density multiplier to both axes."""
    return max(1, round(width * scale)), max(1, round(height * scale))


class CanvasRasterizer:
    """Rasterizes a RenderedSource with cairosvg onto an opaque background.

    Font embedding is skipped: cairosvg never fetches external resources,
    so custom web fonts fall back to locally installed ones.
    """

    name = "canvas"
    accepts = "svg"

    def __init__(self, background_color: str = "#f0f0f0") -> None:
        self._background = ImageColor.getrgb(background_color)[:3]
        self._background_hex = background_color

    async def rasterize(
        self, source: str | RenderedSource, params: ExportParameters
    ) -> RasterImage:
        svg = source.svg if isinstance(source, RenderedSource) else source
        if not svg or not svg.strip():
            raise EmptySourceError("No SVG markup to rasterize")

        svg = normalize_markup(svg)
        natural_w, natural_h = measure_svg(svg)
        target_w, target_h = scaled_size(natural_w, natural_h, params.scale)
        logger.debug(
            "canvas rasterize %dx%d -> %dx%d (scale %s)",
            natural_w, natural_h, target_w, target_h, params.scale,
        )
        data = await asyncio.to_thread(self._draw, svg, target_w, target_h)
        return RasterImage(width=target_w, height=target_h, data=data)

    def _draw(self, svg: str, width: int, height: int) -> bytes:
        png = cairosvg.svg2png(
            bytestring=svg.encode("utf-8"),
            output_width=width,
            output_height=height,
            background_color=self._background_hex,
        )
        # Flatten onto the background so no transparent pixels reach the PDF.
        with Image.open(io.BytesIO(png)) as frame:
            frame = frame.convert("RGBA")
            if frame.size != (width, height):
                frame = frame.resize((width, height), Image.Resampling.LANCZOS)
            canvas = Image.new("RGB", (width, height), self._background)
            canvas.paste(frame, mask=frame.getchannel("A"))
        out = io.BytesIO()
        canvas.save(out, format="PNG")
        return out.getvalue()
