"""Per-call temporary files with guaranteed cleanup."""

from __future__ import annotations

import logging
import tempfile
import uuid
from pathlib import Path
from types import TracebackType

logger = logging.getLogger(__name__)

TEMP_PREFIX = "mermaidpress-"


class TempWorkspace:
    """Hands out uniquely-named temp paths and deletes all of them on exit.

    Every path embeds one random token per workspace, so concurrent exports
    sharing a temp directory never collide. Cleanup runs on both the success
    and the failure path; an unlink failure is logged and never replaces the
    exception that is already propagating.

        with TempWorkspace() as ws:
            src = ws.write_text("input", ".mmd", markup)
            out = ws.path("output", ".png")
            ...
    """

    def __init__(self, directory: str | Path | None = None) -> None:
        self.directory = Path(directory) if directory else Path(tempfile.gettempdir())
        self.token = uuid.uuid4().hex
        self._paths: list[Path] = []
        self._closed = False

    def __enter__(self) -> TempWorkspace:
        self.directory.mkdir(parents=True, exist_ok=True)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    @property
    def pattern(self) -> str:
        """Glob matching every path this workspace can create."""
        return f"{TEMP_PREFIX}{self.token}-*"

    def path(self, role: str, suffix: str) -> Path:
        """Reserve a path for `role`; the file itself is not created."""
        if self._closed:
            raise RuntimeError("workspace already cleaned up")
        p = self.directory / f"{TEMP_PREFIX}{self.token}-{role}{suffix}"
        self._paths.append(p)
        return p

    def write_text(self, role: str, suffix: str, content: str) -> Path:
        p = self.path(role, suffix)
        p.write_text(content, encoding="utf-8")
        return p

    def write_bytes(self, role: str, suffix: str, content: bytes) -> Path:
        p = self.path(role, suffix)
        p.write_bytes(content)
        return p

    def cleanup(self) -> None:
        if self._closed:
            return
        self._closed = True
        for p in self._paths:
            try:
                p.unlink(missing_ok=True)
            except OSError:
                logger.warning("Failed to remove temp file %s", p, exc_info=True)
