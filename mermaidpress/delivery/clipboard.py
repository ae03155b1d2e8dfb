"""Places PNG bytes on the system clipboard through the platform's own tools."""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
import sys
from typing import Protocol, runtime_checkable

from mermaidpress.errors import ClipboardUnavailableError
from mermaidpress.rasterize.workspace import TempWorkspace

logger = logging.getLogger(__name__)

_TIMEOUT = 10
_MAC_HEX_RE = re.compile(r"«data PNGf([0-9A-Fa-f]*)»")


@runtime_checkable
class Clipboard(Protocol):
    """Anything that can hold an image for pasting elsewhere."""

    def copy_image(self, data: bytes, *, verify: bool = False) -> None: ...


class SystemClipboard:
    """Clipboard backed by wl-copy, xclip, osascript or PowerShell.

    The backend is picked from the platform on first use. Verification reads
    the image back and compares bytes; it is skipped on Windows, where the
    clipboard re-encodes images.
    """

    def __init__(self, platform: str | None = None) -> None:
        self._platform = platform or sys.platform

    def backend(self) -> str:
        if self._platform == "darwin":
            return "osascript"
        if self._platform.startswith("win"):
            return "powershell"
        if os.environ.get("WAYLAND_DISPLAY") and shutil.which("wl-copy"):
            return "wl-copy"
        if shutil.which("xclip"):
            return "xclip"
        raise ClipboardUnavailableError(
            "No clipboard tool found (install wl-clipboard or xclip)"
        )

    def copy_image(self, data: bytes, *, verify: bool = False) -> None:
        if not data:
            raise ClipboardUnavailableError("Refusing to place an empty image on the clipboard")
        backend = self.backend()
        logger.debug("copying %d bytes to clipboard via %s", len(data), backend)

        if backend == "wl-copy":
            self._run(["wl-copy", "--type", "image/png"], data)
        elif backend == "xclip":
            self._run(["xclip", "-selection", "clipboard", "-t", "image/png", "-i"], data)
        elif backend == "osascript":
            with TempWorkspace() as ws:
                png = ws.write_bytes("clipboard", ".png", data)
                script = f'set the clipboard to (read (POSIX file "{png}") as «class PNGf»)'
                self._run(["osascript", "-e", script])
        else:
            with TempWorkspace() as ws:
                png = ws.write_bytes("clipboard", ".png", data)
                script = (
                    "Add-Type -AssemblyName System.Windows.Forms; "
                    "Add-Type -AssemblyName System.Drawing; "
                    f"$img = [System.Drawing.Image]::FromFile('{png}'); "
                    "[System.Windows.Forms.Clipboard]::SetImage($img); $img.Dispose()"
                )
                self._run(["powershell", "-NoProfile", "-STA", "-Command", script])

        if verify:
            self.verify(data, backend)

    def verify(self, data: bytes, backend: str | None = None) -> None:
        """Read the clipboard back and compare it byte for byte."""
        backend = backend or self.backend()
        if backend == "powershell":
            logger.warning("clipboard verification is not supported on Windows; skipped")
            return
        current = self.read_image(backend)
        if current != data:
            raise ClipboardUnavailableError(
                f"Clipboard verification failed: wrote {len(data)} bytes, read back {len(current)}"
            )
        logger.debug("clipboard verified (%d bytes)", len(data))

    def read_image(self, backend: str | None = None) -> bytes:
        backend = backend or self.backend()
        if backend == "wl-copy":
            return self._capture(["wl-paste", "--no-newline", "--type", "image/png"])
        if backend == "xclip":
            return self._capture(["xclip", "-selection", "clipboard", "-t", "image/png", "-o"])
        if backend == "osascript":
            out = self._capture(["osascript", "-e", "the clipboard as «class PNGf»"])
            m = _MAC_HEX_RE.search(out.decode("utf-8", errors="replace"))
            return bytes.fromhex(m.group(1)) if m else b""
        raise ClipboardUnavailableError(f"Reading the clipboard is not supported via {backend}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _run(cmd: list[str], data: bytes | None = None) -> None:
        # wl-copy and xclip keep serving the selection from a forked child
        # that inherits our pipes, so their output is not captured.
        try:
            proc = subprocess.run(
                cmd,
                input=data,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=_TIMEOUT,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ClipboardUnavailableError(f"Clipboard access failed: {e}") from e
        if proc.returncode != 0:
            raise ClipboardUnavailableError(
                f"Clipboard access denied ({cmd[0]} exited with {proc.returncode})"
            )

    @staticmethod
    def _capture(cmd: list[str]) -> bytes:
        try:
            proc = subprocess.run(cmd, capture_output=True, timeout=_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ClipboardUnavailableError(f"Clipboard read failed: {e}") from e
        if proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            raise ClipboardUnavailableError(f"Clipboard read failed: {stderr or cmd[0]}")
        return proc.stdout


def copy_image_to_clipboard(data: bytes, *, verify: bool = False) -> None:
    """Place PNG bytes on this machine's clipboard."""
    SystemClipboard().copy_image(data, verify=verify)
