"""Pydantic models for the export pipeline."""

from __future__ import annotations

import logging
import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mermaidpress.errors import InvalidDimensionsError, UnsupportedFormatError

logger = logging.getLogger(__name__)

THEMES: tuple[str, ...] = ("default", "dark", "forest", "neutral", "base")
DEFAULT_THEME = "default"
DEFAULT_SCALE = 2.0


def normalize_theme(theme: str | None) -> str:
    """Return theme if Mermaid knows it, else the default theme."""
    if theme in THEMES:
        return theme
    if theme:
        logger.debug("unknown theme %r, using %r", theme, DEFAULT_THEME)
    return DEFAULT_THEME


class ExportFormat(str, Enum):
    """Artifact kinds the exporter can produce."""

    svg = "svg"
    png = "png"
    pdf = "pdf"
    clipboard_png = "clipboard-png"

    @classmethod
    def parse(cls, value: ExportFormat | str) -> ExportFormat:
        try:
            return cls(value)
        except ValueError as e:
            raise UnsupportedFormatError(value) from e


# content type, suggested filename
ARTIFACT_TYPES: dict[ExportFormat, tuple[str, str]] = {
    ExportFormat.svg: ("image/svg+xml", "diagram.svg"),
    ExportFormat.png: ("image/png", "diagram.png"),
    ExportFormat.pdf: ("application/pdf", "diagram.pdf"),
    ExportFormat.clipboard_png: ("image/png", "diagram.png"),
}


class ExportParameters(BaseModel):
    """Per-call render settings."""

    model_config = ConfigDict(frozen=True)

    theme: str = DEFAULT_THEME
    scale: float = Field(default=DEFAULT_SCALE, gt=0)

    @field_validator("theme", mode="before")
    @classmethod
    def _known_theme(cls, v: object) -> str:
        return normalize_theme(v if isinstance(v, str) else None)

    @field_validator("scale")
    @classmethod
    def _finite_scale(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("scale must be finite")
        return v


class RenderedSource(BaseModel):
    """SVG markup already produced by a renderer, plus the markup it came from."""

    model_config = ConfigDict(frozen=True)

    svg: str
    markup: str | None = None


class RasterImage(BaseModel):
    """An encoded PNG and its pixel size."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    data: bytes

    def model_post_init(self, __context: object) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidDimensionsError(self.width, self.height)


class ExportArtifact(BaseModel):
    """Final bytes handed to the caller."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    content_type: str
    filename: str

    @property
    def size(self) -> int:
        return len(self.data)
