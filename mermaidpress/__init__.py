"""mermaidpress: export Mermaid diagrams to SVG, PNG, PDF or the clipboard."""

from mermaidpress.errors import ExportError
from mermaidpress.export.exporter import Exporter
from mermaidpress.export.models import ExportArtifact, ExportFormat, ExportParameters, RenderedSource

__version__ = "0.1.0"

__all__ = [
    "ExportArtifact",
    "ExportError",
    "ExportFormat",
    "ExportParameters",
    "Exporter",
    "RenderedSource",
    "__version__",
]
