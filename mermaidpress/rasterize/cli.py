"""External-tool strategy: shells out to the Mermaid CLI (mmdc)."""

from __future__ import annotations

import asyncio
import io
import json
import logging
import shlex
import shutil
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from mermaidpress.config.models import CliConfig
from mermaidpress.errors import (
    EmptySourceError,
    InternalFailureError,
    InvalidDimensionsError,
    SubprocessFailureError,
)
from mermaidpress.export.models import ExportParameters, RasterImage, RenderedSource
from mermaidpress.rasterize.workspace import TempWorkspace

logger = logging.getLogger(__name__)


def _format_scale(scale: float) -> str:
    return str(int(scale)) if float(scale).is_integer() else str(scale)


class CliRasterizer:
    """Runs `mmdc` once per call against files in a TempWorkspace.

    Input, output and optional config files share one random token and are
    all removed before the call returns, whichever way it returns.
    """

    name = "cli"
    accepts = "markup"

    def __init__(self, config: CliConfig, background_color: str = "#f0f0f0") -> None:
        self.config = config
        self._background = background_color
        argv = shlex.split(config.command)
        if not argv:
            raise ValueError("cli.command must not be empty")
        self._argv = argv

    @property
    def tool(self) -> str:
        return Path(self._argv[0]).name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def rasterize(
        self, source: str | RenderedSource, params: ExportParameters
    ) -> RasterImage:
        markup = source.markup if isinstance(source, RenderedSource) else source
        data = await self._render(markup, params.theme, params.scale, ".png")
        if not data:
            raise InvalidDimensionsError(0, 0, f"{self.tool} produced an empty image")
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
        except UnidentifiedImageError as e:
            raise SubprocessFailureError(
                self.tool, str(e), message=f"{self.tool} produced an unreadable PNG"
            ) from e
        return RasterImage(width=width, height=height, data=data)

    async def render_document(self, markup: str, params: ExportParameters) -> bytes:
        return await self._render(markup, params.theme, params.scale, ".pdf", ["--pdfFit"])

    async def render_svg(self, markup: str, theme: str) -> str:
        data = await self._render(markup, theme, 1.0, ".svg")
        return data.decode("utf-8")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _render(
        self,
        markup: str | None,
        theme: str,
        scale: float,
        suffix: str,
        extra: list[str] | None = None,
    ) -> bytes:
        if not markup or not markup.strip():
            raise EmptySourceError("Mermaid code is required")

        with TempWorkspace(self.config.temp_dir) as ws:
            try:
                input_path = ws.write_text("input", ".mmd", markup)
                output_path = ws.path("output", suffix)
                cmd = self._build_command(ws, input_path, output_path, theme, scale)
            except OSError as e:
                raise InternalFailureError(f"Could not write temporary files: {e}") from e
            cmd.extend(extra or [])
            logger.debug("temp files written (%s)", ws.pattern)

            await self._execute(cmd)

            try:
                data = output_path.read_bytes()
            except FileNotFoundError as e:
                raise SubprocessFailureError(
                    self.tool, message=f"{self.tool} exited cleanly but wrote no {suffix} file"
                ) from e
            logger.debug("read %d bytes from %s", len(data), output_path.name)
            return data

    def _build_command(
        self,
        ws: TempWorkspace,
        input_path: Path,
        output_path: Path,
        theme: str,
        scale: float,
    ) -> list[str]:
        executable = shutil.which(self._argv[0]) or self._argv[0]
        cmd = [
            executable,
            *self._argv[1:],
            "-i", str(input_path),
            "-o", str(output_path),
            "-t", theme,
            "-s", _format_scale(scale),
            "-b", self._background,
        ]
        if self.config.font_family:
            mermaid_cfg = {
                "fontFamily": self.config.font_family,
                "themeVariables": {"fontFamily": self.config.font_family},
            }
            cfg_path = ws.write_text("config", ".json", json.dumps(mermaid_cfg))
            cmd.extend(["-c", str(cfg_path)])
        if self.config.chromium_executable or self.config.chromium_args:
            puppeteer_cfg: dict[str, object] = {"headless": True}
            if self.config.chromium_executable:
                puppeteer_cfg["executablePath"] = self.config.chromium_executable
            if self.config.chromium_args:
                puppeteer_cfg["args"] = list(self.config.chromium_args)
            pcfg_path = ws.write_text("puppeteer", ".json", json.dumps(puppeteer_cfg))
            cmd.extend(["-p", str(pcfg_path)])
        cmd.extend(self.config.extra_args)
        return cmd

    async def _execute(self, cmd: list[str]) -> None:
        logger.debug("running %s", shlex.join(cmd))
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SubprocessFailureError(
                self.tool, str(e), message=f"Could not start {self.tool}: {e}"
            ) from e

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.config.timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise SubprocessFailureError(
                self.tool, message=f"{self.tool} timed out after {self.config.timeout}s"
            ) from e

        if proc.returncode != 0:
            text = stderr.decode("utf-8", errors="replace")
            logger.warning("%s exited with %d", self.tool, proc.returncode)
            raise SubprocessFailureError(self.tool, text, proc.returncode)
