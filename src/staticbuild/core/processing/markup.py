from __future__ import annotations

"""
Markup Transformation Pipeline.

Explicit parse -> mutate -> serialize pipeline over an owned document value:

1. parse_document(): BeautifulSoup (html.parser) locates every <script> and
   <style> element. The document keeps the raw source text, so entities,
   attribute quoting and every untouched byte survive exactly.
2. minify_inline_assets(): replaces eligible element bodies in place by
   recording non-overlapping edits against the raw text.
3. serialize(): applies the edits; the result is then handed to the
   whole-document minifier.

Inline scripts are minified only when their type is empty, a classic
JavaScript MIME type (JS_MIME_TYPES) or "module". Any other type, such as
text/template or text/x-handlebars, is a data block and is left untouched
along with src scripts, JSON-LD and elements carrying the preserve marker.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Final, List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from staticbuild.core.processing.html_minifier import DEFAULT_FRAGMENT_PATTERNS, minify_document
from staticbuild.core.processing.minifier import minify_css, minify_js
from staticbuild.domain.build_models import MarkupOutcome, MinificationOutcome
from staticbuild.domain.constants import (
    DEFAULT_JS_BACKEND,
    DEFAULT_PRESERVE_ATTR,
    JS_MIME_TYPES,
    LD_JSON_TYPE,
    MODULE_TYPE,
)

logger = logging.getLogger(__name__)

_START_TAG: Final[re.Pattern] = re.compile(r"<[^\s/>]+(?:\"[^\"]*\"|'[^']*'|[^'\">])*>")


# -----------------------------------------------------------------------------
# DOCUMENT MODEL
# -----------------------------------------------------------------------------

@dataclass
class MarkupDocument:
    """
    Owned, mutable document value.

    Attributes:
        raw: Original source text.
        soup: Parse tree used only to locate elements.
        edits: Pending (start, end, replacement) spans against 'raw'.
    """
    raw: str
    soup: BeautifulSoup
    edits: List[Tuple[int, int, str]] = field(default_factory=list)
    _line_starts: List[int] = field(default_factory=list, repr=False)

    def offset_of(self, element: Tag) -> Optional[int]:
        """Absolute offset of an element's start tag in 'raw', if known."""
        line, col = element.sourceline, element.sourcepos
        if line is None or col is None or not 1 <= line <= len(self._line_starts):
            return None
        return self._line_starts[line - 1] + col

    def replace_span(self, start: int, end: int, replacement: str) -> None:
        self.edits.append((start, end, replacement))


# ==============================================================================
# PUBLIC API
# ==============================================================================

def parse_document(text: str) -> MarkupDocument:
    """
    Parse markup into a MarkupDocument.

    Args:
        text: Raw HTML source.

    Returns:
        MarkupDocument: The owned document value.
    """
    soup = BeautifulSoup(text, "html.parser")
    line_starts = [0]
    for line in text.split("\n")[:-1]:
        line_starts.append(line_starts[-1] + len(line) + 1)
    return MarkupDocument(raw=text, soup=soup, _line_starts=line_starts)


def minify_inline_assets(
        doc: MarkupDocument,
        js_backend: str = DEFAULT_JS_BACKEND,
        preserve_attr: str = DEFAULT_PRESERVE_ATTR,
) -> List[str]:
    """
    Minify eligible inline <script> and <style> bodies in place.

    Scripts are skipped when they have a src, carry the preserve marker,
    are JSON-LD, use a non-JavaScript type, or are blank. Styles are skipped
    when they carry the preserve marker or are blank. A failing element
    keeps its original body and yields a diagnostic.

    Args:
        doc: Parsed document, mutated through its edit list.
        js_backend: JavaScript minifier backend.
        preserve_attr: Attribute that opts an element out.

    Returns:
        List[str]: Per-element diagnostics (empty when all succeeded).
    """
    diagnostics: List[str] = []

    for element in doc.soup.find_all(["script", "style"]):
        outcome = _minify_element(element, js_backend, preserve_attr)
        if outcome is None:
            continue

        where = f"<{element.name}> at line {element.sourceline}"
        if not outcome.ok:
            diagnostics.append(f"{where}: {outcome.error}")
            continue

        span = _body_span(doc, element)
        if span is None:
            diagnostics.append(f"{where}: body could not be located in source")
            continue
        doc.replace_span(span[0], span[1], outcome.content)

    return diagnostics


def serialize(doc: MarkupDocument) -> str:
    """Apply pending edits to the raw text and return the new document."""
    out: List[str] = []
    pos = 0
    for start, end, replacement in sorted(doc.edits):
        if start < pos:
            raise ValueError(f"Overlapping edits at offset {start}")
        out.append(doc.raw[pos:start])
        out.append(replacement)
        pos = end
    out.append(doc.raw[pos:])
    return "".join(out)


def transform_markup(
        text: str,
        js_backend: str = DEFAULT_JS_BACKEND,
        preserve_attr: str = DEFAULT_PRESERVE_ATTR,
        fragments: Optional[List[re.Pattern]] = None,
) -> MarkupOutcome:
    """
    Run the full markup pipeline on one document. Never raises.

    Args:
        text: Raw HTML source.
        js_backend: JavaScript minifier backend for inline scripts.
        preserve_attr: Per-element opt-out attribute.
        fragments: Fragment patterns for the document minifier.

    Returns:
        MarkupOutcome: ok=False means the document must not be written.
    """
    try:
        doc = parse_document(text)
        diagnostics = minify_inline_assets(doc, js_backend, preserve_attr)
        content = minify_document(
            serialize(doc),
            DEFAULT_FRAGMENT_PATTERNS if fragments is None else fragments,
        )
    except Exception as e:
        logger.debug("Markup pipeline failed", exc_info=True)
        return MarkupOutcome(ok=False, error=f"{type(e).__name__}: {e}")

    return MarkupOutcome(ok=True, content=content, diagnostics=diagnostics)


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _minify_element(element: Tag, js_backend: str, preserve_attr: str) -> Optional[MinificationOutcome]:
    """Minify one element body, or return None when it is not eligible."""
    if element.has_attr(preserve_attr):
        return None

    body = element.string
    if body is None or not body.strip():
        return None

    if element.name == "style":
        return minify_css(str(body))

    if element.has_attr("src"):
        return None
    script_type = str(element.get("type") or "").strip().lower()
    if script_type == LD_JSON_TYPE:
        return None
    if script_type == MODULE_TYPE:
        return minify_js(str(body), module=True, backend=js_backend)
    if script_type not in JS_MIME_TYPES:
        return None
    return minify_js(str(body), backend=js_backend)


def _body_span(doc: MarkupDocument, element: Tag) -> Optional[Tuple[int, int]]:
    """Locate an element body in the raw text and verify it byte-for-byte."""
    start = doc.offset_of(element)
    if start is None:
        return None

    m = _START_TAG.match(doc.raw, start)
    if not m or not doc.raw[start + 1:m.end()].lower().startswith(element.name):
        return None

    body = str(element.string)
    body_start = m.end()
    body_end = body_start + len(body)
    if doc.raw[body_start:body_end] != body:
        return None
    return body_start, body_end
