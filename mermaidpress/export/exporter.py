"""Export orchestrator: one entry point for svg, png, pdf and clipboard exports."""

from __future__ import annotations

import asyncio
import logging

from mermaidpress.config.models import MermaidPressConfig
from mermaidpress.delivery.clipboard import Clipboard, SystemClipboard
from mermaidpress.document.assembler import wrap_as_document
from mermaidpress.errors import EmptySourceError, ExportError, InternalFailureError
from mermaidpress.export.models import (
    ARTIFACT_TYPES,
    ExportArtifact,
    ExportFormat,
    ExportParameters,
    RasterImage,
    RenderedSource,
)
from mermaidpress.export.svg import SvgPostProcessor
from mermaidpress.rasterize import (
    DocumentRenderer,
    Rasterizer,
    RenderSourceProvider,
    create_rasterizer,
    create_source_provider,
)

logger = logging.getLogger(__name__)

Source = str | RenderedSource


class Exporter:
    """Turns markup or a rendered SVG into an ExportArtifact.

    The rasterizer is picked once from config (interactive → in-process
    canvas, backend → browser or mmdc). If it fails the export fails; there
    is no fallback to another strategy. Every call is independent, so
    several exports may run concurrently on one Exporter.
    """

    def __init__(
        self,
        config: MermaidPressConfig | None = None,
        *,
        rasterizer: Rasterizer | None = None,
        source_provider: RenderSourceProvider | None = None,
        clipboard: Clipboard | None = None,
        post_processor: SvgPostProcessor | None = None,
    ) -> None:
        self.config = config or MermaidPressConfig()
        self.rasterizer = rasterizer or create_rasterizer(self.config)
        self._source_provider = source_provider
        self.clipboard = clipboard or SystemClipboard()
        self.post_processor = post_processor or SvgPostProcessor(
            strip_declarations=self.config.svg.strip_declarations,
            inline_styles=self.config.svg.inline_styles,
        )

    @property
    def source_provider(self) -> RenderSourceProvider:
        if self._source_provider is None:
            if isinstance(self.rasterizer, RenderSourceProvider):
                self._source_provider = self.rasterizer
            else:
                self._source_provider = create_source_provider(self.config)
        return self._source_provider

    def default_parameters(self) -> ExportParameters:
        return ExportParameters(
            theme=self.config.export.default_theme,
            scale=self.config.export.default_scale,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def export(
        self,
        source: Source,
        fmt: ExportFormat | str,
        params: ExportParameters | None = None,
    ) -> ExportArtifact:
        """Export `source` as `fmt`. Raises an ExportError subclass on failure."""
        fmt = ExportFormat.parse(fmt)
        params = params or self.default_parameters()
        _require_source(source)
        logger.info(
            "export %s via %s (theme=%s, scale=%s)",
            fmt.value, self.rasterizer.name, params.theme, params.scale,
        )

        try:
            if fmt is ExportFormat.svg:
                data = (await self._svg(source, params.theme)).encode("utf-8")
            elif fmt is ExportFormat.pdf:
                data = await self._pdf(source, params)
            else:
                data = (await self.rasterize(source, params)).data
                if fmt is ExportFormat.clipboard_png:
                    await asyncio.to_thread(
                        self.clipboard.copy_image, data, verify=self.config.clipboard.verify
                    )
        except ExportError:
            raise
        except Exception as e:
            logger.exception("export %s failed", fmt.value)
            raise InternalFailureError(str(e) or type(e).__name__) from e

        if not data:
            raise InternalFailureError(f"{fmt.value} export produced no data")
        content_type, filename = ARTIFACT_TYPES[fmt]
        return ExportArtifact(data=data, content_type=content_type, filename=filename)

    async def rasterize(self, source: Source, params: ExportParameters) -> RasterImage:
        """Run the configured rasterizer on whichever form of the source it accepts."""
        if self.rasterizer.accepts == "svg":
            svg = await self._svg(source, params.theme, post_process=False)
            prepared: Source = RenderedSource(
                svg=svg, markup=source.markup if isinstance(source, RenderedSource) else source
            )
        else:
            prepared = _markup(source)
        return await self.rasterizer.rasterize(prepared, params)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _svg(self, source: Source, theme: str, post_process: bool = True) -> str:
        if isinstance(source, RenderedSource) and source.svg.strip():
            svg = source.svg
        else:
            svg = await self.source_provider.render_svg(_markup(source), theme)
        if not svg or not svg.strip():
            raise EmptySourceError("No SVG markup available")
        if post_process and self.post_processor.enabled:
            svg = self.post_processor.process(svg)
        return svg

    async def _pdf(self, source: Source, params: ExportParameters) -> bytes:
        if self.config.export.pdf_mode == "native" and isinstance(self.rasterizer, DocumentRenderer):
            return await self.rasterizer.render_document(_markup(source), params)
        image = await self.rasterize(source, params)
        return await asyncio.to_thread(wrap_as_document, image)


def _require_source(source: Source) -> None:
    if isinstance(source, RenderedSource):
        if not source.svg.strip() and not (source.markup or "").strip():
            raise EmptySourceError("No SVG markup available")
    elif not source or not source.strip():
        raise EmptySourceError("Mermaid code is required")


def _markup(source: Source) -> str:
    """The markup a process-side strategy needs; a bare SVG cannot stand in for it."""
    markup = source.markup if isinstance(source, RenderedSource) else source
    if not markup or not markup.strip():
        raise EmptySourceError("This export strategy needs the diagram markup, not only its SVG")
    return markup
