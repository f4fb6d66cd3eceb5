from __future__ import annotations

"""
Unit tests for the Markup Transformation Pipeline.

Verifies:
1. Parse/serialize without edits reproduces the source exactly.
2. Inline eligibility rules (src, opt-out marker, JSON-LD, module, non-JS types).
3. Per-element failure isolation.
4. Document-level failure reporting.
"""

from unittest.mock import patch

from staticbuild.core.processing import minifier
from staticbuild.core.processing.markup import (
    minify_inline_assets,
    parse_document,
    serialize,
    transform_markup,
)

DOC = """<html><head>
<style>
  p  {  color : red ;  }
</style>
</head><body>
<p title="a &amp; b">x &lt; y &nbsp; &copy;<br>
<script>
  var   total   =   1 + 2 ;
</script>
</body></html>
"""


def _inline(text: str):
    doc = parse_document(text)
    diagnostics = minify_inline_assets(doc, js_backend="rjsmin")
    return serialize(doc), diagnostics


def test_roundtrip_without_edits_is_exact() -> None:
    """Entities, unclosed tags and whitespace survive when nothing is edited."""
    doc = parse_document(DOC)
    assert serialize(doc) == DOC


def test_inline_style_and_script_are_minified() -> None:
    out, diagnostics = _inline(DOC)

    assert diagnostics == []
    assert "p{color:red}" in out
    assert "var total=1+2;" in out


def test_inline_pass_preserves_entities_and_attributes() -> None:
    out, _ = _inline(DOC)

    assert '<p title="a &amp; b">x &lt; y &nbsp; &copy;<br>' in out
    assert out.startswith("<html><head>\n<style>")


def test_script_with_src_is_skipped() -> None:
    text = '<script src="a.js">  var   keep  =  1;  </script>'
    out, _ = _inline(text)
    assert out == text


def test_preserve_marker_opts_out() -> None:
    text = "<script data-preserve>\n  var   keep  =  1;\n</script><style data-preserve> a  { b : c } </style>"
    out, _ = _inline(text)
    assert out == text


def test_custom_preserve_attribute() -> None:
    text = "<script data-raw>  var   keep  =  1;  </script>"
    doc = parse_document(text)
    minify_inline_assets(doc, preserve_attr="data-raw")
    assert serialize(doc) == text


def test_json_ld_is_skipped() -> None:
    text = '<script type="application/ld+json">\n  {"a":   1}\n</script>'
    out, _ = _inline(text)
    assert out == text


def test_non_javascript_types_are_skipped() -> None:
    text = '<script type="text/template">\n  <div>  {{ name }}  </div>\n</script>'
    out, _ = _inline(text)
    assert out == text


def test_module_scripts_are_minified_in_module_mode() -> None:
    text = '<script type="module">\n  import { a }   from "./a.js" ;\n  a( ) ;\n</script>'
    with patch("staticbuild.core.processing.markup.minify_js", wraps=minifier.minify_js) as spy:
        out, _ = _inline(text)

    assert spy.call_args.kwargs["module"] is True
    assert "  a( ) ;" not in out


def test_empty_elements_are_skipped() -> None:
    text = "<script>   </script><style></style>"
    out, diagnostics = _inline(text)
    assert out == text
    assert diagnostics == []


def test_malformed_script_is_left_unchanged() -> None:
    """One broken element yields a diagnostic; its siblings are still minified."""
    broken = "<script>\n  function broken( {\n</script>"
    good = "<script>\n  var   ok   =   1 ;\n</script>"
    out, diagnostics = _inline(broken + good)

    assert "\n  function broken( {\n" in out
    assert "var ok=1;" in out
    assert len(diagnostics) == 1
    assert "<script>" in diagnostics[0]


def test_uppercase_tags_are_located() -> None:
    text = "<SCRIPT>\n  var   a   =   1 ;\n</SCRIPT>"
    out, diagnostics = _inline(text)
    assert diagnostics == []
    assert "var a=1;" in out


# -----------------------------------------------------------------------------
# Full pipeline
# -----------------------------------------------------------------------------

def test_transform_markup_success() -> None:
    outcome = transform_markup(DOC, js_backend="rjsmin")

    assert outcome.ok is True
    assert "var total=1+2;" in outcome.content
    assert len(outcome.content) < len(DOC)


def test_transform_markup_reports_document_failure() -> None:
    with patch("staticbuild.core.processing.markup.minify_document", side_effect=RuntimeError("boom")):
        outcome = transform_markup(DOC)

    assert outcome.ok is False
    assert outcome.content == ""
    assert "boom" in outcome.error


def test_transform_markup_keeps_opted_out_script_exactly() -> None:
    """Trailing whitespace inside a preserved script survives the document pass."""
    text = "<html><body><script data-preserve>var x = 1;   </script></body></html>"
    outcome = transform_markup(text)

    assert outcome.ok is True
    assert outcome.content == text


def test_transform_markup_keeps_entities_encoded() -> None:
    outcome = transform_markup(DOC, js_backend="rjsmin")

    assert 'title="a &amp; b"' in outcome.content
    assert "&lt; y &nbsp; &copy;" in outcome.content
    assert "\xa0" not in outcome.content


def test_transform_markup_leaves_data_blocks_untouched() -> None:
    """Scripts with a non-JavaScript type are data, not code."""
    body = "\n  <li>  {{ item }}  </li>\n"
    text = f'<ul></ul><script type="text/x-handlebars">{body}</script>'

    with patch("staticbuild.core.processing.markup.minify_js") as js:
        outcome = transform_markup(text)

    js.assert_not_called()
    assert f'<script type="text/x-handlebars">{body}</script>' in outcome.content
