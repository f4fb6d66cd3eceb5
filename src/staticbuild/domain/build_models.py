from __future__ import annotations

"""
Build Domain Data Models.

Defines the immutable records exchanged between the walker, the per-file
workers and the orchestrator, plus the factory functions that assemble the
final BuildResult consumed by the CLI layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

# -----------------------------------------------------------------------------
# ERRORS
# -----------------------------------------------------------------------------

class StaticBuildError(Exception):
    """Base class for every error raised by the build pipeline."""


class OutputRootError(StaticBuildError):
    """The output root could not be deleted or created. Fatal for the run."""


class MinificationError(StaticBuildError):
    """A minifier backend rejected its input."""

# -----------------------------------------------------------------------------
# CLASSIFICATION MODELS
# -----------------------------------------------------------------------------

class PathKind(str, Enum):
    """Total classification of a source-relative path."""
    EXCLUDED = "excluded"
    ALREADY_MINIFIED = "already_minified"
    CODE_JS = "code_js"
    CODE_CSS = "code_css"
    MARKUP = "markup"
    OTHER = "other"


@dataclass(frozen=True)
class ExclusionSet:
    """
    Directory and file name tokens that are never walked, processed or copied.

    Attributes:
        excluded_dirs: Segment names whose subtree is skipped.
        excluded_names: Exact file names that are skipped.
    """
    excluded_dirs: frozenset = frozenset()
    excluded_names: frozenset = frozenset()

    @classmethod
    def from_lists(cls, dirs: List[str], names: List[str]) -> "ExclusionSet":
        return cls(frozenset(dirs), frozenset(names))

    def matches_name(self, name: str) -> bool:
        """Exact token test for a single path segment."""
        return name in self.excluded_dirs or name in self.excluded_names


@dataclass(frozen=True)
class FileRecord:
    """
    One non-excluded file found under the source root.

    Attributes:
        file_path: Absolute filesystem path.
        rel_path: Source-root-relative path, always '/'-separated.
        ext: Lower-cased extension including the dot ('' if none).
    """
    file_path: str
    rel_path: str
    ext: str

    @property
    def file_name(self) -> str:
        return self.rel_path.rsplit("/", 1)[-1]

    @property
    def parts(self) -> Tuple[str, ...]:
        return tuple(self.rel_path.split("/"))

# -----------------------------------------------------------------------------
# TRANSFORMATION OUTCOMES
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class MinificationOutcome:
    """
    Result of minifying a single piece of code.

    On failure 'content' carries the original input unchanged so callers
    can always write it through.
    """
    ok: bool
    content: str
    error: str = ""

    @classmethod
    def success(cls, content: str) -> "MinificationOutcome":
        return cls(ok=True, content=content)

    @classmethod
    def failure(cls, original: str, error: str) -> "MinificationOutcome":
        return cls(ok=False, content=original, error=error)


@dataclass(frozen=True)
class MarkupOutcome:
    """
    Result of the full markup pipeline for one document.

    Attributes:
        ok: False when the document must not be written.
        content: Final markup (empty on failure).
        diagnostics: Non-fatal per-element messages (inline minifier failures).
        error: Reason for a document-level failure.
    """
    ok: bool
    content: str = ""
    diagnostics: List[str] = field(default_factory=list)
    error: str = ""


@dataclass(frozen=True)
class BuildIssue:
    """
    Recoverable failure recorded for a single file.

    Attributes:
        rel_path: File path relative to the source root.
        stage: Pipeline stage that reported it (code, markup, mirror, ...).
        error: Descriptive message.
    """
    rel_path: str
    stage: str
    error: str


@dataclass
class MirrorStats:
    """Mutable counters accumulated by the asset mirror."""
    copied: int = 0
    skipped_existing: int = 0
    skipped_code: int = 0
    skipped_excluded: int = 0
    issues: List[BuildIssue] = field(default_factory=list)

# -----------------------------------------------------------------------------
# RESULT MODEL
# -----------------------------------------------------------------------------

COUNTER_KEYS: Tuple[str, ...] = (
    "js_minified",
    "css_minified",
    "already_minified",
    "code_failed",
    "markup_written",
    "markup_failed",
    "assets_copied",
    "assets_skipped",
    "other_files",
    "other_copied",
    "excluded",
)


@dataclass(frozen=True)
class BuildResult:
    """
    Unified result object of a complete build run.

    Attributes:
        ok: False only on a fatal error (output root not established).
        error: Descriptive message in case of failure.
        source_root: Normalized source directory.
        output_root: Normalized destination directory.
        dry_run: Whether the run only planned without writing.
        counters: Per-category file counts (see COUNTER_KEYS).
        issues: Recoverable per-file failures.
        warnings: Number of non-fatal diagnostics emitted.
        summary: Technical execution summary for rendering.
    """
    ok: bool
    error: str
    source_root: str
    output_root: str
    dry_run: bool = False
    counters: Dict[str, int] = field(default_factory=dict)
    issues: List[BuildIssue] = field(default_factory=list)
    warnings: int = 0
    summary: Dict[str, Any] = field(default_factory=dict)

# -----------------------------------------------------------------------------
# FACTORY FUNCTIONS
# -----------------------------------------------------------------------------

def empty_counters() -> Dict[str, int]:
    return {k: 0 for k in COUNTER_KEYS}


def create_error_result(
        error: str,
        source_root: str,
        output_root: str = "",
        dry_run: bool = False,
) -> BuildResult:
    """
    Create a failed build result instance.

    Args:
        error: Detailed error description.
        source_root: The target source directory.
        output_root: The destination that could not be established.
        dry_run: Whether the failing run was a simulation.

    Returns:
        BuildResult: An immutable error result object.
    """
    return BuildResult(
        ok=False,
        error=error,
        source_root=source_root,
        output_root=output_root,
        dry_run=dry_run,
        counters=empty_counters(),
    )


def create_success_result(
        source_root: str,
        output_root: str,
        counters: Dict[str, int],
        issues: Optional[List[BuildIssue]] = None,
        warnings: int = 0,
        dry_run: bool = False,
        summary_extra: Optional[Dict[str, Any]] = None,
) -> BuildResult:
    """
    Create a successful build result instance.

    Args:
        source_root: Normalized source directory.
        output_root: Normalized destination directory.
        counters: Final per-category counts.
        issues: Recoverable failures collected during the run.
        warnings: Number of non-fatal diagnostics.
        dry_run: Whether the run only planned.
        summary_extra: Additional metadata for the summary payload.

    Returns:
        BuildResult: An immutable success result object.
    """
    issues = list(issues or [])
    summary: Dict[str, Any] = {
        "source_root": source_root,
        "output_root": output_root,
        "dry_run": dry_run,
        "counters": dict(counters),
        "issues": len(issues),
        "warnings": warnings,
    }
    summary.update(summary_extra or {})

    return BuildResult(
        ok=True,
        error="",
        source_root=source_root,
        output_root=output_root,
        dry_run=dry_run,
        counters=dict(counters),
        issues=issues,
        warnings=warnings,
        summary=summary,
    )
