"""Export data model and SVG post-processing.

The orchestrator lives in mermaidpress.export.exporter; it is not
re-exported here so the rasterizers can import these models freely.
"""

from mermaidpress.export.models import (
    ARTIFACT_TYPES,
    THEMES,
    ExportArtifact,
    ExportFormat,
    ExportParameters,
    RasterImage,
    RenderedSource,
    normalize_theme,
)
from mermaidpress.export.svg import SvgPostProcessor

__all__ = [
    "ARTIFACT_TYPES",
    "ExportArtifact",
    "ExportFormat",
    "ExportParameters",
    "RasterImage",
    "RenderedSource",
    "SvgPostProcessor",
    "THEMES",
    "normalize_theme",
]
