"""Writes artifacts to caller-chosen paths."""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path

from mermaidpress.export.models import ExportArtifact

logger = logging.getLogger(__name__)


def write_artifact(artifact: ExportArtifact, path: str | Path) -> Path:
    """Write artifact bytes unchanged to `path`.

    Bytes go to a hidden sibling first and are renamed into place, so a
    failed write never leaves a truncated file at `path`.
    """
    dest = Path(path)
    dest.parent.mkdir(parents=True, exist_ok=True)
    part = dest.with_name(f".{dest.name}.{uuid.uuid4().hex}.part")
    try:
        part.write_bytes(artifact.data)
        os.replace(part, dest)
    except OSError:
        part.unlink(missing_ok=True)
        raise
    logger.info("wrote %s (%d bytes)", dest, artifact.size)
    return dest


def content_disposition(artifact: ExportArtifact) -> str:
    """Header value that makes a browser download the artifact."""
    return f'attachment; filename="{artifact.filename}"'
