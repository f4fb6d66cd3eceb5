from __future__ import annotations

"""
Code Minification Service.

Wraps the JavaScript and CSS minifier backends behind a single contract:
every call returns a MinificationOutcome and never raises. On failure the
outcome carries the original input so callers can write it through.

JavaScript backends:
- auto (default): terser when it is on PATH, rjsmin otherwise.
- terser: external CLI, two compress passes and renamed local bindings.
- rjsmin: pure-Python comment and whitespace removal.

CSS is minified with rcssmin.
"""

import logging
import shutil
import subprocess
from typing import Final, List, Optional

import rcssmin
import rjsmin

from staticbuild.core.processing.js_syntax import check_js_syntax
from staticbuild.domain.build_models import MinificationError, MinificationOutcome, PathKind
from staticbuild.domain.constants import DEFAULT_JS_BACKEND, JS_BACKENDS

logger = logging.getLogger(__name__)

_TERSER_TIMEOUT_S: Final[int] = 60
_TERSER_BASE_ARGS: Final[List[str]] = [
    "--compress", "passes=2",
    "--mangle",
    "--ecma", "2020",
    "--format", "comments=false",
]

# Set after the first auto -> rjsmin fallback of the process
_rjsmin_fallback_logged = False

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def minify_js(
        content: str,
        *,
        module: bool = False,
        backend: str = DEFAULT_JS_BACKEND,
) -> MinificationOutcome:
    """
    Minify a JavaScript source.

    Args:
        content: Script text.
        module: Treat the source as an ES module (terser only).
        backend: One of 'rjsmin', 'terser' or 'auto'.

    Returns:
        MinificationOutcome: Minified text, or the original text plus a diagnostic.
    """
    if not content.strip():
        return MinificationOutcome.success("")

    problem = check_js_syntax(content)
    if problem:
        return MinificationOutcome.failure(content, problem)

    try:
        if _resolve_js_backend(backend) == "terser":
            result = _run_terser(content, module)
        else:
            result = rjsmin.jsmin(content)
    except MinificationError as e:
        return MinificationOutcome.failure(content, str(e))

    _log_reduction("js", content, result)
    return MinificationOutcome.success(result)


def minify_css(content: str) -> MinificationOutcome:
    """
    Minify a stylesheet with rcssmin after a brace-balance check.

    Args:
        content: Stylesheet text.

    Returns:
        MinificationOutcome: Minified text, or the original text plus a diagnostic.
    """
    if not content.strip():
        return MinificationOutcome.success("")

    problem = _check_css_braces(content)
    if problem:
        return MinificationOutcome.failure(content, problem)

    result = rcssmin.cssmin(content)
    _log_reduction("css", content, result)
    return MinificationOutcome.success(result)


def minify_code(
        content: str,
        kind: PathKind,
        *,
        module: bool = False,
        backend: str = DEFAULT_JS_BACKEND,
) -> MinificationOutcome:
    """
    Dispatch to the minifier matching a code classification.

    Args:
        content: Source text.
        kind: PathKind.CODE_JS or PathKind.CODE_CSS.
        module: ES module flag, JavaScript only.
        backend: JavaScript backend name.

    Returns:
        MinificationOutcome: The minifier result. Unsupported kinds fail.
    """
    if kind is PathKind.CODE_JS:
        return minify_js(content, module=module, backend=backend)
    if kind is PathKind.CODE_CSS:
        return minify_css(content)
    return MinificationOutcome.failure(content, f"No minifier for kind '{kind.value}'")


def terser_available() -> bool:
    return shutil.which("terser") is not None

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _resolve_js_backend(backend: str) -> str:
    global _rjsmin_fallback_logged

    name = (backend or DEFAULT_JS_BACKEND).strip().lower()
    if name not in JS_BACKENDS:
        logger.warning(f"Unknown JS backend '{backend}'. Using '{DEFAULT_JS_BACKEND}'.")
        name = DEFAULT_JS_BACKEND
    if name != "auto":
        return name
    if terser_available():
        return "terser"

    if not _rjsmin_fallback_logged:
        _rjsmin_fallback_logged = True
        logger.info("terser not found on PATH. JavaScript is minified with rjsmin (whitespace and comments only).")
    return "rjsmin"


def _run_terser(content: str, module: bool) -> str:
    """
    Pipe a script through the terser CLI.

    Raises:
        MinificationError: Missing binary, timeout or non-zero exit status.
    """
    executable: Optional[str] = shutil.which("terser")
    if not executable:
        raise MinificationError("terser executable not found on PATH")

    args = [executable] + _TERSER_BASE_ARGS
    if module:
        args.append("--module")

    try:
        proc = subprocess.run(
            args,
            input=content,
            capture_output=True,
            text=True,
            encoding="utf-8",
            timeout=_TERSER_TIMEOUT_S,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise MinificationError(f"terser could not run: {e}") from e

    if proc.returncode != 0:
        detail = (proc.stderr or "").strip().splitlines()
        raise MinificationError(detail[0] if detail else f"terser exited with {proc.returncode}")

    return proc.stdout.rstrip("\n")


def _check_css_braces(text: str) -> Optional[str]:
    """Verify '{' / '}' balance outside comments and string literals."""
    depth = 0
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "/" and text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end < 0:
                return "Unterminated comment"
            i = end + 2
            continue
        if ch in ('"', "'"):
            j = i + 1
            while j < n and text[j] != ch:
                j += 2 if text[j] == "\\" else 1
            if j >= n:
                return "Unterminated string literal"
            i = j + 1
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                return "Unexpected '}'"
        i += 1

    if depth:
        return "Unclosed '{' at end of input"
    return None


def _log_reduction(kind: str, before: str, after: str) -> None:
    if before:
        reduction = 100 - (len(after) * 100 / len(before))
        logger.debug(f"Minified {kind}: {len(before)} -> {len(after)} chars ({reduction:.1f}% reduction)")
