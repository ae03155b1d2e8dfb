"""Document assembly: raster in, single-page PDF out."""

from mermaidpress.document.assembler import page_size_for, wrap_as_document

__all__ = ["page_size_for", "wrap_as_document"]
