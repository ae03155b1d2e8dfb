"""Exception taxonomy for the export pipeline."""

from __future__ import annotations


class ExportError(Exception):
    """Base class for every failure an export can surface to its caller."""

    kind = "export_error"

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        self.hint = hint
        super().__init__(message)


class EmptySourceError(ExportError):
    """No markup or rendered SVG was available to export."""

    kind = "empty_source"


class InvalidDimensionsError(ExportError):
    """The rendered diagram measured zero (or negative) width or height."""

    kind = "invalid_dimensions"

    def __init__(self, width: float | None, height: float | None, context: str = "") -> None:
        self.width = width
        self.height = height
        msg = f"Could not get valid dimensions from rendered diagram ({width}x{height})"
        if context:
            msg += f": {context}"
        super().__init__(msg)


class SubprocessFailureError(ExportError):
    """An out-of-process renderer (browser or CLI) failed."""

    kind = "subprocess_failure"

    def __init__(
        self,
        tool: str,
        stderr: str = "",
        returncode: int | None = None,
        message: str | None = None,
    ) -> None:
        self.tool = tool
        self.stderr = stderr
        self.returncode = returncode
        if message is None:
            message = f"{tool} failed"
            if returncode is not None:
                message += f" with exit code {returncode}"
            if stderr.strip():
                message += f": {stderr.strip()}"
        super().__init__(message)


class ClipboardUnavailableError(ExportError):
    """The platform clipboard could not be written (or verified)."""

    kind = "clipboard_unavailable"

    def __init__(self, message: str) -> None:
        super().__init__(message, hint="Try downloading the image instead of copying it.")


class UnsupportedFormatError(ExportError):
    """The requested export format is not one the caller can produce."""

    kind = "unsupported_format"

    def __init__(
        self,
        fmt: object,
        supported: tuple[str, ...] = ("svg", "png", "pdf", "clipboard-png"),
        *,
        hint: str | None = None,
    ) -> None:
        self.format = fmt
        super().__init__(
            f"Unsupported export format: {fmt!r}. Supported: {', '.join(supported)}",
            hint=hint,
        )


class InternalFailureError(ExportError):
    """Anything uncategorized raised while exporting."""

    kind = "internal_failure"


__all__ = [
    "ClipboardUnavailableError",
    "EmptySourceError",
    "ExportError",
    "InternalFailureError",
    "InvalidDimensionsError",
    "SubprocessFailureError",
    "UnsupportedFormatError",
]
