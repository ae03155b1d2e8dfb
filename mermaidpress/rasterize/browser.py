"""Headless Chromium strategy via Playwright."""

from __future__ import annotations

import html
import io
import logging
import math
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from PIL import Image
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from mermaidpress.config.models import BrowserConfig
from mermaidpress.errors import EmptySourceError, InvalidDimensionsError, SubprocessFailureError
from mermaidpress.export.models import ExportParameters, RasterImage, RenderedSource

logger = logging.getLogger(__name__)

_PAGE_TEMPLATE = """\
<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <style>
      body {{ margin: 0; background-color: {background}; }}
      .mermaid {{ display: inline-block; padding: {padding}px; }}
    </style>
  </head>
  <body>
    <div class="mermaid">{markup}</div>
  </body>
</html>
"""

_RUN_SCRIPT = """\
async ({theme}) => {
  mermaid.initialize({startOnLoad: false, theme: theme, securityLevel: 'strict'});
  await mermaid.run({querySelector: '.mermaid'});
}
"""

_RENDER_SVG_SCRIPT = """\
async ({code, theme}) => {
  mermaid.initialize({startOnLoad: false, theme: theme, securityLevel: 'strict'});
  const { svg } = await mermaid.render('mermaid-graph-' + Date.now(), code);
  return svg;
}
"""

_MEASURE_SCRIPT = """\
() => {
  const el = document.querySelector('.mermaid svg');
  if (!el) return null;
  const { x, y, width, height } = el.getBoundingClientRect();
  return { x, y, width, height };
}
"""


def _markup_of(source: str | RenderedSource) -> str:
    markup = source.markup if isinstance(source, RenderedSource) else source
    if not markup or not markup.strip():
        raise EmptySourceError("Mermaid code is required")
    return markup


class BrowserRasterizer:
    """Renders markup with Mermaid inside a short-lived headless Chromium.

    Each call launches its own browser and closes it on every exit path;
    nothing is pooled between calls.
    """

    name = "browser"
    accepts = "markup"

    def __init__(self, config: BrowserConfig, background_color: str = "#f0f0f0") -> None:
        self.config = config
        self._background = background_color

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def rasterize(
        self, source: str | RenderedSource, params: ExportParameters
    ) -> RasterImage:
        markup = _markup_of(source)
        try:
            async with self._page(params.scale) as page:
                width, height = await self._render(page, markup, params.theme)
                pad = self.config.padding
                await page.set_viewport_size(
                    {"width": width + 2 * pad, "height": height + 2 * pad}
                )
                rect = await page.evaluate(_MEASURE_SCRIPT)
                png = await page.screenshot(
                    type="png",
                    clip={
                        "x": rect["x"] if rect else pad,
                        "y": rect["y"] if rect else pad,
                        "width": width,
                        "height": height,
                    },
                )
        except PlaywrightError as e:
            raise SubprocessFailureError("chromium", str(e), message=f"Browser render failed: {e}") from e

        with Image.open(io.BytesIO(png)) as img:
            px_w, px_h = img.size
        logger.debug("browser screenshot %dx%d (scale %s)", px_w, px_h, params.scale)
        return RasterImage(width=px_w, height=px_h, data=png)

    async def render_document(self, markup: str, params: ExportParameters) -> bytes:
        """Print the diagram to a single PDF page sized to the diagram."""
        markup = _markup_of(markup)
        try:
            async with self._page(1.0) as page:
                width, height = await self._render(page, markup, params.theme, padded=False)
                return await page.pdf(
                    width=f"{width}px",
                    height=f"{height}px",
                    print_background=True,
                    page_ranges="1",
                )
        except PlaywrightError as e:
            raise SubprocessFailureError("chromium", str(e), message=f"Browser print failed: {e}") from e

    async def render_svg(self, markup: str, theme: str) -> str:
        markup = _markup_of(markup)
        try:
            async with self._page(1.0) as page:
                await page.set_content("<!DOCTYPE html><html><body></body></html>")
                await self._load_mermaid(page)
                return await page.evaluate(_RENDER_SVG_SCRIPT, {"code": markup, "theme": theme})
        except PlaywrightError as e:
            raise SubprocessFailureError("chromium", str(e), message=f"Mermaid render failed: {e}") from e

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _page(self, scale: float) -> AsyncIterator[Page]:
        launch_kwargs: dict[str, Any] = {"headless": True, "args": list(self.config.launch_args)}
        if self.config.executable_path:
            launch_kwargs["executable_path"] = self.config.executable_path

        async with async_playwright() as p:
            browser = await p.chromium.launch(**launch_kwargs)
            logger.debug("launched chromium (scale %s)", scale)
            try:
                page = await browser.new_page(device_scale_factor=scale)
                yield page
            finally:
                await browser.close()
                logger.debug("closed chromium")

    async def _load_mermaid(self, page: Page) -> None:
        if self.config.mermaid_script_path:
            await page.add_script_tag(path=str(Path(self.config.mermaid_script_path)))
        else:
            await page.add_script_tag(url=self.config.mermaid_cdn_url)

    async def _render(
        self, page: Page, markup: str, theme: str, padded: bool = True
    ) -> tuple[int, int]:
        """Render markup into the page and return its size in CSS pixels."""
        await page.set_content(
            _PAGE_TEMPLATE.format(
                background=self._background,
                padding=self.config.padding if padded else 0,
                markup=html.escape(markup),
            )
        )
        await self._load_mermaid(page)
        await page.evaluate(_RUN_SCRIPT, {"theme": theme})
        await page.wait_for_selector(
            ".mermaid svg", state="attached", timeout=self.config.render_timeout_ms
        )
        rect = await page.evaluate(_MEASURE_SCRIPT)
        if not rect or rect["width"] <= 0 or rect["height"] <= 0:
            raise InvalidDimensionsError(
                rect["width"] if rect else None,
                rect["height"] if rect else None,
                "rendered Mermaid diagram is empty",
            )
        return math.ceil(rect["width"]), math.ceil(rect["height"])
