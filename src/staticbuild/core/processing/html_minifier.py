from __future__ import annotations

"""
Whole-Document HTML Minifier.

Runs after the inline pass. Three steps:
1. Shield: every match of a fragment pattern (pre, code, JSON-LD scripts,
   conditional comments), the body of every script, style and textarea
   element, and every character reference is swapped for an opaque marker
   word.
2. Rewrite start tags: drop redundant attributes and default script/style
   types, minify CSS inside style="..." attributes. Script and style bodies
   are skipped verbatim.
3. Collapse whitespace and strip comments with minify-html (JS/CSS
   minification disabled), then put the shielded fragments back.

Shielded spans therefore come out byte-for-byte identical. Entities such as
`&amp;` or `&nbsp;` stay encoded.
"""

import logging
import re
import secrets
from typing import Dict, Final, List, Optional, Sequence, Tuple

import minify_html
import rcssmin

from staticbuild.domain.constants import JS_MIME_TYPES

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# FRAGMENT RULES
# -----------------------------------------------------------------------------

DEFAULT_FRAGMENT_PATTERNS: Final[List[re.Pattern]] = [
    re.compile(r"<pre\b[^>]*>.*?</pre\s*>", re.IGNORECASE | re.DOTALL),
    re.compile(r"<code\b[^>]*>.*?</code\s*>", re.IGNORECASE | re.DOTALL),
    re.compile(
        r"<script\b[^>]*\btype\s*=\s*[\"']?application/ld\+json[\"']?[^>]*>.*?</script\s*>",
        re.IGNORECASE | re.DOTALL,
    ),
]

# Always shielded: minify-html would drop them as ordinary comments
_CONDITIONAL_COMMENT: Final[re.Pattern] = re.compile(
    r"<!--\[if\b.*?<!\[endif\]-->", re.IGNORECASE | re.DOTALL
)

# Only the "body" group is shielded so start tags can still be rewritten
_RAW_TEXT_BODY: Final[re.Pattern] = re.compile(
    r"<(?P<tag>script|style|textarea)\b(?:\"[^\"]*\"|'[^']*'|[^'\">])*>"
    r"(?P<body>.*?)</(?P=tag)\s*>",
    re.IGNORECASE | re.DOTALL,
)

# minify-html decodes these otherwise
_CHARACTER_REFERENCE: Final[re.Pattern] = re.compile(
    r"&(?:#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);"
)

_MARKER: Final[re.Pattern] = re.compile(r"sbfrag[0-9a-f]{8}x[0-9]+x")

# -----------------------------------------------------------------------------
# TAG SCANNING PATTERNS
# -----------------------------------------------------------------------------

_TAG_OR_COMMENT: Final[re.Pattern] = re.compile(
    r"<!--.*?-->"
    r"|<(?P<name>[a-zA-Z][a-zA-Z0-9:-]*)(?P<attrs>(?:\"[^\"]*\"|'[^']*'|[^'\">])*)>",
    re.DOTALL,
)
_ATTRIBUTE: Final[re.Pattern] = re.compile(
    r"(?P<name>[^\s\"'>/=]+)(?:\s*=\s*(?P<value>\"[^\"]*\"|'[^']*'|[^\s\"'=<>`]+))?"
)
_UNQUOTED_SAFE: Final[re.Pattern] = re.compile(r"^[^\s\"'=<>`]+$")

# Elements whose body is emitted untouched
_RAW_TEXT_ELEMENTS: Final[frozenset] = frozenset({"script", "style", "textarea", "title"})

# (element, attribute, value) triples that equal the HTML default
_REDUNDANT_VALUES: Final[frozenset] = frozenset({
    ("script", "language", "javascript"),
    ("form", "method", "get"),
    ("input", "type", "text"),
    ("area", "shape", "rect"),
})

_Attr = Tuple[str, Optional[str], str]  # (lower name, unquoted value or None, raw text)


# ==============================================================================
# PUBLIC API
# ==============================================================================

def minify_document(text: str, fragments: Optional[Sequence[re.Pattern]] = None) -> str:
    """
    Minify a serialized HTML document while preserving protected fragments.

    Args:
        text: Full document markup.
        fragments: Ordered fragment patterns. Defaults to pre/code/JSON-LD.

    Returns:
        str: The minified document.
    """
    if not text.strip():
        return ""

    patterns = list(DEFAULT_FRAGMENT_PATTERNS if fragments is None else fragments)
    shielded, markers = shield_fragments(
        text, [_CONDITIONAL_COMMENT] + patterns + [_RAW_TEXT_BODY, _CHARACTER_REFERENCE]
    )

    rewritten = rewrite_start_tags(shielded)
    collapsed = minify_html.minify(
        rewritten,
        minify_js=False,
        minify_css=False,
        minify_doctype=False,
        keep_closing_tags=True,
        keep_html_and_head_opening_tags=True,
        remove_bangs=False,
        remove_processing_instructions=False,
    )

    result = restore_fragments(collapsed, markers)
    logger.debug(f"Document minified: {len(text)} -> {len(result)} chars ({len(markers)} fragments kept)")
    return result


def shield_fragments(text: str, patterns: Sequence[re.Pattern]) -> Tuple[str, List[Tuple[str, str]]]:
    """
    Replace every fragment match with a unique marker word.

    Patterns are applied in order; a later pattern may enclose markers
    produced by an earlier one. A pattern with a named ``body`` group only
    has that group replaced. Identical originals share one marker.

    Args:
        text: Document markup.
        patterns: Compiled fragment patterns.

    Returns:
        Tuple[str, List[Tuple[str, str]]]: Shielded text and (marker, original)
                                           pairs in creation order.
    """
    salt = _unique_salt(text)
    markers: List[Tuple[str, str]] = []
    known: Dict[str, str] = {}

    def _marker_for(original: str) -> str:
        if original not in known:
            known[original] = f"sbfrag{salt}x{len(markers)}x"
            markers.append((known[original], original))
        return known[original]

    def _swap(match: re.Match) -> str:
        if "body" not in match.re.groupindex:
            return _marker_for(match.group(0))
        whole = match.group(0)
        if not match.group("body"):
            return whole
        start = match.start("body") - match.start()
        end = match.end("body") - match.start()
        return whole[:start] + _marker_for(match.group("body")) + whole[end:]

    for pattern in patterns:
        text = pattern.sub(_swap, text)
    return text, markers


def restore_fragments(text: str, markers: List[Tuple[str, str]]) -> str:
    """Put shielded fragments back, including markers nested inside them."""
    originals = dict(markers)

    def _lookup(match: re.Match) -> str:
        return originals.get(match.group(0), match.group(0))

    for _ in range(len(originals) + 1):
        restored = _MARKER.sub(_lookup, text)
        if restored == text:
            break
        text = restored
    return text


def rewrite_start_tags(text: str) -> str:
    """
    Rebuild every start tag without redundant attributes.

    Comments and the bodies of raw-text elements are copied verbatim.

    Args:
        text: Document markup.

    Returns:
        str: Markup with rewritten start tags.
    """
    out: List[str] = []
    pos = 0
    n = len(text)

    while pos < n:
        m = _TAG_OR_COMMENT.search(text, pos)
        if not m:
            out.append(text[pos:])
            break

        out.append(text[pos:m.start()])
        name = m.group("name")
        if name is None:
            out.append(m.group(0))
            pos = m.end()
            continue

        tag = name.lower()
        out.append(_rebuild_tag(name, tag, m.group("attrs")))
        pos = m.end()

        if tag in _RAW_TEXT_ELEMENTS:
            close = re.compile(rf"</{tag}\s*>", re.IGNORECASE).search(text, pos)
            end = close.start() if close else n
            out.append(text[pos:end])
            pos = end

    return "".join(out)


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _unique_salt(text: str) -> str:
    while True:
        salt = secrets.token_hex(4)
        if f"sbfrag{salt}" not in text:
            return salt


def _parse_attributes(raw: str) -> Tuple[List[_Attr], bool]:
    """Split a raw attribute string. Also reports a trailing self-closing slash."""
    attrs: List[_Attr] = []
    last_end = 0
    for m in _ATTRIBUTE.finditer(raw):
        value = m.group("value")
        if value is not None and value[:1] in ('"', "'"):
            value = value[1:-1]
        attrs.append((m.group("name").lower(), value, m.group(0)))
        last_end = m.end()
    self_closing = raw[last_end:].strip() == "/"
    return attrs, self_closing


def _rebuild_tag(name: str, tag: str, raw_attrs: str) -> str:
    if not raw_attrs.strip():
        return f"<{name}>"

    attrs, self_closing = _parse_attributes(raw_attrs)
    values: Dict[str, Optional[str]] = {a: v for a, v, _ in attrs}

    kept: List[str] = []
    for attr, value, raw in attrs:
        if _is_redundant(tag, attr, value, values):
            continue
        if attr == "style" and value:
            raw = _quote(attr, _minify_style_attr(value), raw)
        kept.append(raw)

    body = "".join(f" {a}" for a in kept)
    return f"<{name}{body}{' /' if self_closing else ''}>"


def _is_redundant(tag: str, attr: str, value: Optional[str], values: Dict[str, Optional[str]]) -> bool:
    v = (value or "").strip().lower()

    if (tag, attr, v) in _REDUNDANT_VALUES:
        return True
    if tag == "script":
        if attr == "type" and v in JS_MIME_TYPES:
            return True
        if attr == "charset" and "src" not in values:
            return True
    if tag in ("style", "link") and attr == "type" and v == "text/css":
        return True
    if tag == "a" and attr == "name" and value is not None and value == values.get("id"):
        return True
    return False


def _minify_style_attr(value: str) -> str:
    """Minify a declaration list by wrapping it in a throwaway rule."""
    wrapped = rcssmin.cssmin("x{" + value + "}")
    if wrapped.startswith("x{") and wrapped.endswith("}"):
        return wrapped[2:-1]
    return value.strip()


def _quote(attr: str, value: str, raw: str) -> str:
    """Re-emit an attribute keeping its original quote character."""
    quote = raw.split("=", 1)[1].strip()[:1] if "=" in raw else '"'
    if quote not in ('"', "'"):
        quote = "" if _UNQUOTED_SAFE.match(value) else '"'
    if quote and quote in value:
        quote = "'" if quote == '"' else '"'
    return f"{attr}={quote}{value}{quote}"
