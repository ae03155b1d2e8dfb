"""Desktop save contract: pick a path, export, write, report."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel
from rich.prompt import Prompt

from mermaidpress.delivery.files import write_artifact
from mermaidpress.errors import ExportError, SubprocessFailureError, UnsupportedFormatError
from mermaidpress.export.exporter import Exporter, Source
from mermaidpress.export.models import ExportFormat, ExportParameters

logger = logging.getLogger(__name__)

_SUFFIX_FORMATS: dict[str, ExportFormat] = {
    ".svg": ExportFormat.svg,
    ".png": ExportFormat.png,
    ".pdf": ExportFormat.pdf,
}
FILE_FORMATS = tuple(f.value for f in _SUFFIX_FORMATS.values())


class SaveResult(BaseModel):
    """Outcome of a save call, shaped for IPC-style handoff."""

    success: bool
    path: str | None = None
    error: str | None = None
    stderr: str | None = None


def format_for_path(path: str | Path) -> ExportFormat:
    suffix = Path(path).suffix.lower()
    fmt = _SUFFIX_FORMATS.get(suffix)
    if fmt is None:
        raise UnsupportedFormatError(suffix or str(path), FILE_FORMATS)
    return fmt


def choose_save_path(default_name: str = "diagram.png", prompt: str = "Save diagram as") -> Path | None:
    """Ask for an output path. An empty answer means the dialog was cancelled."""
    answer = Prompt.ask(f"{prompt} [dim](empty to cancel)[/dim]", default=default_name)
    answer = (answer or "").strip()
    if not answer:
        logger.info("save cancelled")
        return None
    return Path(answer).expanduser()


async def save_diagram(
    exporter: Exporter,
    source: Source,
    path: str | Path,
    *,
    scale: float | None = None,
    theme: str | None = None,
    fmt: ExportFormat | str | None = None,
) -> SaveResult:
    """Export `source` and write it to `path`. Never raises for export failures.

    Only file formats are accepted; clipboard-png is refused before anything
    is rendered.
    """
    defaults = exporter.default_parameters()
    try:
        params = ExportParameters(
            theme=theme if theme is not None else defaults.theme,
            scale=scale if scale is not None else defaults.scale,
        )
        target_fmt = ExportFormat.parse(fmt) if fmt is not None else format_for_path(path)
        if target_fmt is ExportFormat.clipboard_png:
            raise UnsupportedFormatError(
                target_fmt.value, FILE_FORMATS, hint="Copy to the clipboard instead of saving."
            )
        artifact = await exporter.export(source, target_fmt, params)
        dest = write_artifact(artifact, path)
    except SubprocessFailureError as e:
        logger.warning("save failed: %s", e)
        return SaveResult(success=False, error=str(e), stderr=e.stderr or None)
    except ExportError as e:
        logger.warning("save failed: %s", e)
        return SaveResult(success=False, error=str(e))
    except (OSError, ValueError) as e:
        logger.warning("save failed: %s", e)
        return SaveResult(success=False, error=str(e))
    return SaveResult(success=True, path=str(dest))
