from __future__ import annotations

"""
Path Classification Engine.

Decides, from a source-relative path's segments and base name, whether a
file is excluded, already minified, JavaScript, CSS, markup or a plain
asset. Exclusion tokens are compared against whole path segments, never as
substrings, and always against the relative path so that the location of
the source root on disk can never exclude a file.
"""

import os
from typing import Iterable, Sequence, Tuple

from staticbuild.domain.build_models import ExclusionSet, PathKind
from staticbuild.domain.constants import (
    CSS_EXTENSIONS,
    JS_EXTENSIONS,
    MARKUP_EXTENSIONS,
    MINIFIED_NAME_PATTERN,
)

# -----------------------------------------------------------------------------
# PATH HELPERS
# -----------------------------------------------------------------------------

def split_rel_path(rel_path: str) -> Tuple[str, ...]:
    """
    Split a relative path into its segments, accepting both separators.

    Args:
        rel_path: Source-root-relative path.

    Returns:
        Tuple[str, ...]: Non-empty path segments ('.' segments dropped).
    """
    normalized = rel_path.replace("\\", "/")
    return tuple(p for p in normalized.split("/") if p and p != ".")


def file_extension(file_name: str) -> str:
    """Lower-cased extension including the dot, '' when there is none."""
    _, ext = os.path.splitext(file_name)
    return ext.lower()


def is_minified_name(file_name: str) -> bool:
    """True for *.min.js / *.min.css names (case-insensitive)."""
    return MINIFIED_NAME_PATTERN.search(file_name) is not None

# -----------------------------------------------------------------------------
# EXCLUSION LOGIC
# -----------------------------------------------------------------------------

def is_excluded_rel(parts: Iterable[str], exclusions: ExclusionSet) -> bool:
    """
    Verify whether any segment of a relative path is an exclusion token.

    Args:
        parts: Relative path segments (directories and, optionally, the file name).
        exclusions: Directory and file name tokens.

    Returns:
        bool: True if at least one segment matches exactly.
    """
    return any(exclusions.matches_name(p) for p in parts)

# -----------------------------------------------------------------------------
# CLASSIFICATION
# -----------------------------------------------------------------------------

def classify(parts: Sequence[str], file_name: str, exclusions: ExclusionSet) -> PathKind:
    """
    Assign exactly one PathKind to a file. Pure function of its inputs.

    Precedence: exclusion, then the already-minified naming convention,
    then the extension family.

    Args:
        parts: Relative path segments, the file name included or not.
        file_name: Base name of the file.
        exclusions: Exclusion tokens.

    Returns:
        PathKind: The classification outcome.
    """
    if is_excluded_rel(parts, exclusions) or file_name in exclusions.excluded_names:
        return PathKind.EXCLUDED

    if is_minified_name(file_name):
        return PathKind.ALREADY_MINIFIED

    ext = file_extension(file_name)
    if ext in JS_EXTENSIONS:
        return PathKind.CODE_JS
    if ext in CSS_EXTENSIONS:
        return PathKind.CODE_CSS
    if ext in MARKUP_EXTENSIONS:
        return PathKind.MARKUP
    return PathKind.OTHER


def classify_rel_path(rel_path: str, exclusions: ExclusionSet) -> PathKind:
    """Convenience wrapper over classify() for a raw relative path string."""
    parts = split_rel_path(rel_path)
    file_name = parts[-1] if parts else ""
    return classify(parts, file_name, exclusions)
