"""Rasterizer strategies and their factory."""

from mermaidpress.config.models import MermaidPressConfig
from mermaidpress.rasterize.base import DocumentRenderer, Rasterizer, RenderSourceProvider
from mermaidpress.rasterize.browser import BrowserRasterizer
from mermaidpress.rasterize.canvas import CanvasRasterizer, measure_svg, scaled_size
from mermaidpress.rasterize.cli import CliRasterizer
from mermaidpress.rasterize.workspace import TempWorkspace

STRATEGIES = ("canvas", "browser", "cli")


def create_source_provider(config: MermaidPressConfig) -> RenderSourceProvider:
    """Return the out-of-process renderer configured as export.backend."""
    if config.export.backend == "cli":
        return CliRasterizer(config.cli, config.export.background_color)
    return BrowserRasterizer(config.browser, config.export.background_color)


def create_rasterizer(config: MermaidPressConfig, strategy: str | None = None) -> Rasterizer:
    """Create the rasterizer for the deployment environment.

    An interactive process renders SVG in-process (canvas); a backend uses
    the process-side strategy named by export.backend. `strategy` overrides
    both.
    """
    if strategy is None:
        strategy = "canvas" if config.export.environment == "interactive" else config.export.backend

    if strategy == "canvas":
        return CanvasRasterizer(config.export.background_color)
    if strategy == "browser":
        return BrowserRasterizer(config.browser, config.export.background_color)
    if strategy == "cli":
        return CliRasterizer(config.cli, config.export.background_color)
    raise ValueError(
        f"Unsupported rasterizer: {strategy!r}. Supported: {', '.join(STRATEGIES)}"
    )


__all__ = [
    "BrowserRasterizer",
    "CanvasRasterizer",
    "CliRasterizer",
    "DocumentRenderer",
    "Rasterizer",
    "RenderSourceProvider",
    "STRATEGIES",
    "TempWorkspace",
    "create_rasterizer",
    "create_source_provider",
    "measure_svg",
    "scaled_size",
]
