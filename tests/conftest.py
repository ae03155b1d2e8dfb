"""Shared test fixtures for mermaidpress."""

from __future__ import annotations

import io
import shlex
import sys
import textwrap

import pytest
from PIL import Image

from mermaidpress.config.models import CliConfig, MermaidPressConfig
from mermaidpress.export.models import RasterImage

FLOWCHART = "graph TD\n    A[Start] --> B{Is it?}\n    B -->|Yes| C[OK]\n    B -->|No| D[End]\n"

SAMPLE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" id="mermaid-1" '
    'width="100%" viewBox="0 0 120 60" style="max-width: 120px;">'
    "<style>#mermaid-1 .node rect{fill:#ECECFF;stroke:#9370DB;}</style>"
    '<g class="node"><rect x="10" y="10" width="100" height="40"/></g>'
    "</svg>"
)


def make_png(width: int, height: int, color: str = "white") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


class FakeRasterizer:
    """Process-side stand-in: scales a fixed natural size and records calls."""

    name = "fake"
    accepts = "markup"

    def __init__(self, width: int = 100, height: int = 50, error: Exception | None = None):
        self.width = width
        self.height = height
        self.error = error
        self.calls: list = []
        self.documents: list = []

    async def rasterize(self, source, params):
        self.calls.append((source, params))
        if self.error is not None:
            raise self.error
        w, h = round(self.width * params.scale), round(self.height * params.scale)
        return RasterImage(width=w, height=h, data=make_png(w, h))

    async def render_svg(self, markup, theme):
        return SAMPLE_SVG

    async def render_document(self, markup, params):
        self.documents.append((markup, params))
        return b"%PDF-1.4 native"


class FakeProvider:
    def __init__(self, svg: str = SAMPLE_SVG):
        self.svg = svg
        self.calls: list = []

    async def render_svg(self, markup, theme):
        self.calls.append((markup, theme))
        return self.svg


@pytest.fixture
def sample_config():
    return MermaidPressConfig()


@pytest.fixture
def flowchart():
    return FLOWCHART


@pytest.fixture
def sample_svg():
    return SAMPLE_SVG


@pytest.fixture
def fake_rasterizer():
    return FakeRasterizer()


@pytest.fixture
def fake_provider():
    return FakeProvider()


# ---------------------------------------------------------------------------
# Fake mmdc: a real executable script so subprocess and temp-file handling run
# ---------------------------------------------------------------------------

_FAKE_MMDC_HEADER = """\
import json
import pathlib
import sys

args = sys.argv[1:]


def opt(flag):
    return args[args.index(flag) + 1] if flag in args else None


pathlib.Path({log!r}).write_text(json.dumps(args))
out = pathlib.Path(opt("-o"))
"""

FAKE_MMDC_OK = """\
scale = float(opt("-s"))
if out.suffix == ".png":
    from PIL import Image
    Image.new("RGB", (round(40 * scale), round(20 * scale)), "white").save(out, format="PNG")
elif out.suffix == ".svg":
    out.write_text('<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 40 20"></svg>')
else:
    out.write_bytes(b"%PDF-1.4 from mmdc")
"""


@pytest.fixture
def work_dir(tmp_path):
    return tmp_path / "work"


@pytest.fixture
def fake_mmdc(tmp_path, work_dir):
    """Factory returning a CliConfig whose command runs a scripted fake mmdc.

    The script records its argv as JSON in tmp_path/argv.json.
    """
    counter = iter(range(1000))

    def make(body: str = FAKE_MMDC_OK, **overrides) -> CliConfig:
        script = tmp_path / f"fake_mmdc_{next(counter)}.py"
        header = _FAKE_MMDC_HEADER.format(log=str(tmp_path / "argv.json"))
        script.write_text(header + textwrap.dedent(body))
        overrides.setdefault("temp_dir", str(work_dir))
        command = f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"
        return CliConfig(command=command, **overrides)

    return make
