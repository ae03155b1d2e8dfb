"""Artifact delivery: file writes and the system clipboard."""

from mermaidpress.delivery.clipboard import Clipboard, SystemClipboard, copy_image_to_clipboard
from mermaidpress.delivery.files import content_disposition, write_artifact

__all__ = [
    "Clipboard",
    "SystemClipboard",
    "content_disposition",
    "copy_image_to_clipboard",
    "write_artifact",
]
