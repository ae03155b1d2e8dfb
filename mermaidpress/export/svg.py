"""Optional SVG post-processing stage applied to svg exports."""

from __future__ import annotations

import logging
import re
from html.entities import name2codepoint

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup
from soupsieve import SelectorSyntaxError

from mermaidpress.errors import InternalFailureError

logger = logging.getLogger(__name__)

_XML_DECL_RE = re.compile(r"^\s*<\?xml[^>]*\?>\s*", re.IGNORECASE)
_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>\[]*(\[[^\]]*\])?\s*>\s*", re.IGNORECASE)
_RULE_RE = re.compile(r"([^{}]+)\{([^{}]*)\}")
_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_ENTITY_RE = re.compile(r"&([A-Za-z][A-Za-z0-9]*);")
_VOID_TAG_RE = re.compile(r"<(br|hr|img|wbr)\b([^<>]*?)\s*/?>", re.IGNORECASE)
_XML_ENTITIES = {"amp", "lt", "gt", "quot", "apos"}


def strip_declarations(svg: str) -> str:
    """Drop the XML declaration and DOCTYPE, which office suites reject on paste."""
    svg = _XML_DECL_RE.sub("", svg, count=1)
    return _DOCTYPE_RE.sub("", svg, count=1)


def _numeric_entity(m: re.Match) -> str:
    name = m.group(1)
    if name in _XML_ENTITIES or name not in name2codepoint:
        return m.group(0)
    return f"&#{name2codepoint[name]};"


def normalize_markup(svg: str) -> str:
    """Make Mermaid's HTML-serialized labels well-formed XML.

    Browsers serialize foreignObject labels as HTML, so rendered SVG can
    carry named entities such as ``&nbsp;`` and unclosed ``<br>`` tags.
    """
    svg = _ENTITY_RE.sub(_numeric_entity, svg)
    return _VOID_TAG_RE.sub(r"<\1\2/>", svg)


def _parse(svg: str) -> tuple[BeautifulSoup, Tag]:
    try:
        soup = BeautifulSoup(normalize_markup(strip_declarations(svg)), "xml")
    except ParserRejectedMarkup as e:
        raise InternalFailureError(f"Unparseable SVG: {e}") from e
    root = soup.find("svg")
    if root is None:
        raise InternalFailureError("Markup has no <svg> root element")
    return soup, root


def parse_svg(svg: str) -> Tag:
    """Parse SVG markup and return its root <svg> element."""
    return _parse(svg)[1]


def inline_styles(svg: str) -> str:
    """Copy <style> rules onto matching elements as style attributes.

    Each selector is matched with soupsieve; selectors it cannot parse and
    at-rules are left in the stylesheet untouched. Existing inline
    declarations win over copied ones.
    """
    soup, root = _parse(svg)

    applied: dict[int, tuple[Tag, list[str]]] = {}
    for style_el in root.find_all("style"):
        css = _COMMENT_RE.sub("", style_el.get_text())
        for selectors, body in _RULE_RE.findall(css):
            decls = body.strip().rstrip(";").strip()
            if not decls or selectors.strip().startswith("@"):
                continue
            for selector in selectors.split(","):
                selector = selector.strip()
                if not selector:
                    continue
                try:
                    matched = soup.select(selector)
                except SelectorSyntaxError:
                    logger.debug("skipping selector %r", selector)
                    continue
                for el in matched:
                    applied.setdefault(id(el), (el, []))[1].append(decls)

    for el, decls in applied.values():
        existing = (el.get("style") or "").strip().rstrip(";")
        el["style"] = "; ".join(decls + ([existing] if existing else []))

    logger.debug("inlined styles on %d element(s)", len(applied))
    return str(root)


class SvgPostProcessor:
    """Named, opt-in compatibility stage for SVG artifacts.

    With both flags off the markup passes through byte-for-byte.
    """

    def __init__(self, strip_declarations: bool = False, inline_styles: bool = False) -> None:
        self.strip_declarations = strip_declarations
        self.inline_styles = inline_styles

    @property
    def enabled(self) -> bool:
        return self.strip_declarations or self.inline_styles

    def process(self, svg: str) -> str:
        if self.inline_styles:
            svg = inline_styles(svg)
        if self.strip_declarations:
            svg = strip_declarations(svg)
        return svg
