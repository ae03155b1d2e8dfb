"""Tests for the optional SVG post-processing stage."""

import pytest
from bs4 import BeautifulSoup

from mermaidpress.errors import InternalFailureError
from mermaidpress.export.svg import (
    SvgPostProcessor,
    inline_styles,
    normalize_markup,
    parse_svg,
    strip_declarations,
)

DECLARED = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<!DOCTYPE svg PUBLIC "-//W3C//DTD SVG 1.1//EN" '
    '"http://www.w3.org/Graphics/SVG/1.1/DTD/svg11.dtd">\n'
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10"></svg>'
)

# Label markup as a browser serializes it: HTML entities and void tags.
HTML_LABEL_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" id="m" viewBox="0 0 80 40">'
    "<style>#m .node rect{fill:#ECECFF;}</style>"
    '<g class="node"><rect width="80" height="40"/>'
    '<foreignObject width="80" height="40">'
    '<div xmlns="http://www.w3.org/1999/xhtml">Line1<br>Line2&nbsp;x</div>'
    "</foreignObject></g></svg>"
)


def _soup(svg: str) -> BeautifulSoup:
    return BeautifulSoup(svg, "xml")


class TestStripDeclarations:
    def test_removes_xml_and_doctype(self):
        result = strip_declarations(DECLARED)
        assert result.startswith("<svg")
        assert "DOCTYPE" not in result

    def test_plain_svg_untouched(self, sample_svg):
        assert strip_declarations(sample_svg) == sample_svg


class TestNormalizeMarkup:
    def test_html_entities_become_numeric(self):
        assert normalize_markup("a&nbsp;b&amp;c") == "a&#160;b&amp;c"

    def test_void_tags_closed(self):
        assert normalize_markup("x<br>y<br/>z<br >") == "x<br/>y<br/>z<br/>"

    def test_unknown_entity_left_alone(self):
        assert normalize_markup("&notanentity;") == "&notanentity;"


class TestParseSvg:
    def test_html_labels_parse(self):
        root = parse_svg(HTML_LABEL_SVG)
        assert root.get("viewBox") == "0 0 80 40"
        assert "Line2\xa0x" in root.get_text()

    def test_no_svg_root(self):
        with pytest.raises(InternalFailureError):
            parse_svg("<html><body/></html>")


class TestInlineStyles:
    def test_scoped_rule_applied(self, sample_svg):
        rect = _soup(inline_styles(sample_svg)).find("rect")
        assert "fill:#ECECFF" in rect["style"]

    def test_existing_inline_style_wins(self):
        svg = (
            '<svg xmlns="http://www.w3.org/2000/svg">'
            "<style>rect{fill:red}</style>"
            '<rect style="fill:blue"/></svg>'
        )
        style = _soup(inline_styles(svg)).find("rect")["style"]
        assert style.index("fill:red") < style.index("fill:blue")

    def test_child_combinator(self):
        svg = (
            '<svg xmlns="http://www.w3.org/2000/svg">'
            "<style>g > rect{fill:green}</style>"
            '<g><rect id="direct"/><g class="x"><circle/></g></g><rect id="top"/></svg>'
        )
        rects = {r["id"]: r for r in _soup(inline_styles(svg)).find_all("rect")}
        assert rects["direct"]["style"] == "fill:green"
        assert rects["top"].get("style") is None

    def test_unparseable_selector_skipped(self):
        svg = (
            '<svg xmlns="http://www.w3.org/2000/svg">'
            "<style>rect::after{fill:red} rect{stroke:black}</style>"
            "<g><rect/></g></svg>"
        )
        assert _soup(inline_styles(svg)).find("rect")["style"] == "stroke:black"

    def test_descendant_chain(self):
        svg = (
            '<svg xmlns="http://www.w3.org/2000/svg">'
            "<style>.cluster rect{stroke:black}</style>"
            '<g class="cluster"><g><rect id="inner"/></g></g><rect id="outer"/></svg>'
        )
        rects = {r["id"]: r for r in _soup(inline_styles(svg)).find_all("rect")}
        assert rects["inner"]["style"] == "stroke:black"
        assert rects["outer"].get("style") is None

    def test_html_label_survives(self):
        result = inline_styles(HTML_LABEL_SVG)
        soup = _soup(result)
        assert soup.find("rect")["style"] == "fill:#ECECFF"
        assert soup.find("br") is not None
        assert "Line2\xa0x" in soup.find("div").get_text()

    def test_keeps_svg_namespace(self, sample_svg):
        result = inline_styles(sample_svg)
        assert result.startswith("<svg")
        assert 'xmlns="http://www.w3.org/2000/svg"' in result


class TestSvgPostProcessor:
    def test_disabled_is_passthrough(self):
        proc = SvgPostProcessor()
        assert proc.enabled is False
        assert proc.process(DECLARED) == DECLARED

    def test_strip_only(self):
        proc = SvgPostProcessor(strip_declarations=True)
        assert proc.enabled
        assert proc.process(DECLARED).startswith("<svg")
