"""HTTP export backend."""

from mermaidpress.server.app import DocumentRequest, PngRequest, create_app

__all__ = ["DocumentRequest", "PngRequest", "create_app"]
