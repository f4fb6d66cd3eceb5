from __future__ import annotations

"""
JavaScript Syntax Sanity Check.

rjsmin never rejects its input, so broken scripts would be silently mangled
into something worse. Before minifying, the source is run through the
Pygments JavaScript lexer and two structural defects are detected:
unbalanced brackets and unterminated string literals.

This is a heuristic, not a parser. Its one known false positive is an
object literal nested inside a template literal substitution, which makes
the script pass through unminified.
"""

import logging
from typing import Final, List, Optional

from pygments.lexers import JavascriptLexer
from pygments.token import Error, Punctuation

logger = logging.getLogger(__name__)

_OPENERS: Final[dict] = {"(": ")", "[": "]", "{": "}"}
_CLOSERS: Final[frozenset] = frozenset(_OPENERS.values())
_QUOTES: Final[frozenset] = frozenset({'"', "'", "`"})

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def check_js_syntax(source: str) -> Optional[str]:
    """
    Look for structural defects in a JavaScript source.

    Args:
        source: Script text.

    Returns:
        Optional[str]: A diagnostic for the first defect found, or None when
                       the script looks structurally sound.
    """
    if not source or not source.strip():
        return None

    lexer = JavascriptLexer(stripnl=False, ensurenl=False)
    stack: List[str] = []
    line = 1

    for ttype, value in lexer.get_tokens(source):
        if ttype in Error and value in _QUOTES:
            return f"Unterminated string literal at line {line}"

        if ttype in Punctuation:
            for ch in value:
                if ch in _OPENERS:
                    stack.append(ch)
                elif ch in _CLOSERS:
                    if not stack or _OPENERS[stack[-1]] != ch:
                        return f"Unexpected '{ch}' at line {line}"
                    stack.pop()

        line += value.count("\n")

    if stack:
        return f"Unclosed '{stack[-1]}' at end of input"
    return None
