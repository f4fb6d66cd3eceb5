from __future__ import annotations

"""
Static Asset Mirror Stage.

Copies the contents (never the directory node itself) of each configured
static directory into the same-named directory under the output root.
Runs after the code and markup phases under a first-writer-wins rule: a
destination that already exists is never overwritten, so minified outputs
are never clobbered by raw copies.
"""

import logging
import os
from typing import Iterable, Sequence

from staticbuild.core.pipeline.components.classifier import file_extension
from staticbuild.domain.build_models import (
    BuildIssue,
    ExclusionSet,
    FileRecord,
    MirrorStats,
)
from staticbuild.domain.constants import DEFAULT_MIRROR_SKIP_EXTS
from staticbuild.infra.fs import copy_file, is_within, to_posix_rel

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def mirror_static_dirs(
        source_root: str,
        output_root: str,
        static_dirs: Sequence[str],
        exclusions: ExclusionSet,
        skip_exts: Iterable[str] = DEFAULT_MIRROR_SKIP_EXTS,
        dry_run: bool = False,
) -> MirrorStats:
    """
    Mirror every existing static directory into the output root.

    Args:
        source_root: Source tree root.
        output_root: Destination root.
        static_dirs: Ordered top-level directory names.
        exclusions: Names skipped at any depth.
        skip_exts: Extensions never raw-copied (handled by the minifier).
        dry_run: Count without copying.

    Returns:
        MirrorStats: Copy counters and per-file issues.
    """
    stats = MirrorStats()
    skipped_exts = {e.lower() for e in skip_exts}

    for name in static_dirs:
        src_dir = os.path.join(source_root, name)
        if not os.path.isdir(src_dir):
            continue
        if exclusions.matches_name(name):
            logger.debug(f"Static dir '{name}' is excluded. Skipping.")
            continue

        logger.info(f"Mirroring {name}/")
        _mirror_tree(src_dir, os.path.join(output_root, name), source_root,
                     output_root, exclusions, skipped_exts, dry_run, stats)

    return stats


def copy_other_files(
        records: Iterable[FileRecord],
        output_root: str,
        static_dirs: Sequence[str],
        dry_run: bool = False,
) -> MirrorStats:
    """
    Copy loose 'other' files that live outside the static directories.

    Args:
        records: Files classified as PathKind.OTHER.
        output_root: Destination root.
        static_dirs: Directories already handled by mirror_static_dirs().
        dry_run: Count without copying.

    Returns:
        MirrorStats: Copy counters and per-file issues.
    """
    stats = MirrorStats()

    for record in records:
        if is_in_static_dir(record, static_dirs):
            continue
        _copy_one(record.file_path, os.path.join(output_root, *record.parts),
                  record.rel_path, dry_run, stats)

    return stats


def is_in_static_dir(record: FileRecord, static_dirs: Sequence[str]) -> bool:
    parts = record.parts
    return len(parts) > 1 and parts[0] in static_dirs


# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _mirror_tree(
        src_dir: str,
        dest_dir: str,
        source_root: str,
        output_root: str,
        exclusions: ExclusionSet,
        skip_exts: set,
        dry_run: bool,
        stats: MirrorStats,
) -> None:
    for current, dirs, files in os.walk(src_dir, followlinks=False):
        dirs[:] = sorted(
            d for d in dirs
            if not exclusions.matches_name(d)
            and not is_within(os.path.join(current, d), output_root)
        )

        rel_dir = os.path.relpath(current, src_dir)
        target_dir = dest_dir if rel_dir == "." else os.path.join(dest_dir, rel_dir)

        for file_name in sorted(files):
            src = os.path.join(current, file_name)
            rel_path = to_posix_rel(src, source_root)

            if exclusions.matches_name(file_name):
                stats.skipped_excluded += 1
                continue
            if file_extension(file_name) in skip_exts:
                stats.skipped_code += 1
                continue

            _copy_one(src, os.path.join(target_dir, file_name), rel_path, dry_run, stats)


def _copy_one(src: str, dest: str, rel_path: str, dry_run: bool, stats: MirrorStats) -> None:
    """Non-clobbering copy that records failures instead of raising."""
    if os.path.lexists(dest):
        stats.skipped_existing += 1
        logger.debug(f"Exists, not overwritten: {rel_path}")
        return

    if dry_run:
        stats.copied += 1
        return

    try:
        copy_file(src, dest)
        stats.copied += 1
    except OSError as e:
        logger.warning(f"Copy failed for {rel_path}: {e}")
        stats.issues.append(BuildIssue(rel_path=rel_path, stage="mirror", error=str(e)))
