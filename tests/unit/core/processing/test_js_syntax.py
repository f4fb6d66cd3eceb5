from __future__ import annotations

"""
Unit tests for the JavaScript syntax sanity check.
"""

import pytest

from staticbuild.core.processing.js_syntax import check_js_syntax


@pytest.mark.parametrize("source", [
    "function f(a) { return [a, {b: 1}]; }",
    "var s = '({[';  var t = \"]})\";",
    "var r = /[({]/; f(r);",
    "// comment with ( and {\nvar x = 1;",
    "/* ] */ var y = 2;",
    "",
])
def test_valid_sources_pass(source: str) -> None:
    assert check_js_syntax(source) is None


def test_unclosed_brace_is_reported() -> None:
    problem = check_js_syntax("function f() {\n  return 1;\n")
    assert problem is not None
    assert "{" in problem


def test_mismatched_bracket_is_reported() -> None:
    problem = check_js_syntax("if (a]) { go(); }")
    assert problem is not None
    assert "]" in problem


def test_unterminated_string_is_reported() -> None:
    assert check_js_syntax("var s = 'abc;") is not None
