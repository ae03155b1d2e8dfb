"""Tests for artifact delivery: file writes and the system clipboard."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from mermaidpress.delivery.clipboard import SystemClipboard, copy_image_to_clipboard
from mermaidpress.delivery.files import content_disposition, write_artifact
from mermaidpress.errors import ClipboardUnavailableError
from mermaidpress.export.models import ExportArtifact


@pytest.fixture
def artifact():
    return ExportArtifact(data=b"\x89PNG fake", content_type="image/png", filename="diagram.png")


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestWriteArtifact:
    def test_bytes_written_unchanged(self, tmp_path, artifact):
        dest = write_artifact(artifact, tmp_path / "out" / "job_flow.png")
        assert dest.read_bytes() == artifact.data
        assert [p.name for p in dest.parent.iterdir()] == ["job_flow.png"]

    def test_overwrites_existing(self, tmp_path, artifact):
        target = tmp_path / "diagram.png"
        target.write_bytes(b"old")
        write_artifact(artifact, target)
        assert target.read_bytes() == artifact.data

    def test_failed_rename_leaves_nothing_behind(self, tmp_path, artifact):
        with patch("mermaidpress.delivery.files.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                write_artifact(artifact, tmp_path / "diagram.png")
        assert list(tmp_path.iterdir()) == []


def test_content_disposition(artifact):
    assert content_disposition(artifact) == 'attachment; filename="diagram.png"'


# ---------------------------------------------------------------------------
# Clipboard
# ---------------------------------------------------------------------------


def _which(*available):
    return lambda name: f"/usr/bin/{name}" if name in available else None


def _completed(returncode=0, stdout=b"", stderr=b""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestClipboardBackend:
    def test_macos(self):
        assert SystemClipboard("darwin").backend() == "osascript"

    def test_windows(self):
        assert SystemClipboard("win32").backend() == "powershell"

    def test_wayland_preferred(self, monkeypatch):
        monkeypatch.setenv("WAYLAND_DISPLAY", "wayland-0")
        with patch("mermaidpress.delivery.clipboard.shutil.which", _which("wl-copy", "xclip")):
            assert SystemClipboard("linux").backend() == "wl-copy"

    def test_x11(self, monkeypatch):
        monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
        with patch("mermaidpress.delivery.clipboard.shutil.which", _which("xclip")):
            assert SystemClipboard("linux").backend() == "xclip"

    def test_no_tool(self, monkeypatch):
        monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
        with patch("mermaidpress.delivery.clipboard.shutil.which", _which()):
            with pytest.raises(ClipboardUnavailableError) as exc_info:
                SystemClipboard("linux").backend()
        assert exc_info.value.hint


class TestClipboardCopy:
    @pytest.fixture(autouse=True)
    def _x11(self, monkeypatch):
        monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
        with patch("mermaidpress.delivery.clipboard.shutil.which", _which("xclip")):
            yield

    def test_png_piped_to_xclip(self):
        with patch("mermaidpress.delivery.clipboard.subprocess.run", return_value=_completed()) as run:
            SystemClipboard("linux").copy_image(b"png-bytes")
        cmd = run.call_args.args[0]
        assert cmd[:2] == ["xclip", "-selection"]
        assert "image/png" in cmd
        assert run.call_args.kwargs["input"] == b"png-bytes"

    def test_denied(self):
        with patch("mermaidpress.delivery.clipboard.subprocess.run", return_value=_completed(1)):
            with pytest.raises(ClipboardUnavailableError, match="denied"):
                SystemClipboard("linux").copy_image(b"png-bytes")

    def test_tool_crash(self):
        with patch("mermaidpress.delivery.clipboard.subprocess.run", side_effect=OSError("gone")):
            with pytest.raises(ClipboardUnavailableError):
                SystemClipboard("linux").copy_image(b"png-bytes")

    def test_empty_image_refused(self):
        with pytest.raises(ClipboardUnavailableError):
            SystemClipboard("linux").copy_image(b"")

    def test_verify_roundtrip(self):
        run = MagicMock(side_effect=[_completed(), _completed(stdout=b"png-bytes")])
        with patch("mermaidpress.delivery.clipboard.subprocess.run", run):
            SystemClipboard("linux").copy_image(b"png-bytes", verify=True)
        assert run.call_args_list[1].args[0][-1] == "-o"

    def test_verify_mismatch(self):
        run = MagicMock(side_effect=[_completed(), _completed(stdout=b"other")])
        with patch("mermaidpress.delivery.clipboard.subprocess.run", run):
            with pytest.raises(ClipboardUnavailableError, match="verification failed"):
                SystemClipboard("linux").copy_image(b"png-bytes", verify=True)


def test_windows_verify_skipped():
    with patch("mermaidpress.delivery.clipboard.subprocess.run", return_value=_completed()) as run:
        SystemClipboard("win32").copy_image(b"png-bytes", verify=True)
    assert run.call_count == 1
    assert run.call_args.args[0][0] == "powershell"


def test_macos_reads_hex_back():
    hex_out = "«data PNGf706E672D6279746573»".encode()
    run = MagicMock(side_effect=[_completed(), _completed(stdout=hex_out)])
    with patch("mermaidpress.delivery.clipboard.subprocess.run", run):
        SystemClipboard("darwin").copy_image(b"png-bytes", verify=True)


def test_copy_image_to_clipboard_uses_system_clipboard():
    with patch("mermaidpress.delivery.clipboard.SystemClipboard") as cls:
        copy_image_to_clipboard(b"png-bytes", verify=True)
    cls.return_value.copy_image.assert_called_once_with(b"png-bytes", verify=True)
