"""Rasterizer and render-source interfaces."""

from __future__ import annotations

from typing import Literal, Protocol, runtime_checkable

from mermaidpress.export.models import ExportParameters, RasterImage, RenderedSource


@runtime_checkable
class RenderSourceProvider(Protocol):
    """Turns diagram markup into SVG markup.

    The theme is passed on every call; implementations keep no render
    configuration between calls.
    """

    async def render_svg(self, markup: str, theme: str) -> str: ...


@runtime_checkable
class Rasterizer(Protocol):
    """Produces a PNG raster from one representation of a diagram.

    `accepts` names the representation `rasterize` takes: "svg" means a
    RenderedSource, "markup" means the diagram source text.
    """

    name: str
    accepts: Literal["svg", "markup"]

    async def rasterize(
        self, source: str | RenderedSource, params: ExportParameters
    ) -> RasterImage: ...


@runtime_checkable
class DocumentRenderer(Protocol):
    """A strategy that can print a PDF natively (browser print, mmdc --pdfFit)."""

    async def render_document(self, markup: str, params: ExportParameters) -> bytes: ...
