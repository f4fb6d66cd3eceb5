from __future__ import annotations

"""
Source Tree Discovery Service.

Walks the source root and yields one FileRecord per non-excluded file.
Excluded directories are pruned before descent so their subtrees are never
visited. Iteration order is lexicographic at every level, which keeps the
build output and its logs reproducible.

Directory symlinks are not followed, so symlink cycles cannot occur;
symlinked files are reported like regular files.
"""

import logging
import os
from typing import Iterable, Iterator, List, Optional, Tuple

from staticbuild.core.pipeline.components.classifier import (
    classify,
    file_extension,
    split_rel_path,
)
from staticbuild.domain.build_models import ExclusionSet, FileRecord, PathKind
from staticbuild.infra.fs import is_within, to_posix_rel

logger = logging.getLogger(__name__)


# ==============================================================================
# PUBLIC API
# ==============================================================================

def yield_source_files(
        source_root: str,
        exclusions: ExclusionSet,
        skip_dirs: Iterable[str] = (),
        excluded: Optional[List[str]] = None,
) -> Iterator[FileRecord]:
    """
    Traverse the source tree and yield every non-excluded file.

    Args:
        source_root: Directory to walk.
        exclusions: Directory/file tokens compared against relative segments.
        skip_dirs: Absolute directories pruned from the walk (e.g. an output
                   root nested inside the source root).
        excluded: Optional collector receiving the relative path of every
                  excluded file and pruned directory (directories end with '/').

    Yields:
        FileRecord: One record per file, in lexicographic walk order.
    """
    root_abs = os.path.abspath(source_root)
    skipped = [os.path.abspath(d) for d in skip_dirs]

    for current, dirs, files in os.walk(root_abs, followlinks=False):
        rel_dir_parts = split_rel_path(to_posix_rel(current, root_abs))

        # In-place pruning: excluded subtrees are never descended into
        kept: List[str] = []
        for d in sorted(dirs):
            if any(is_within(os.path.join(current, d), s) for s in skipped):
                continue
            if exclusions.matches_name(d):
                if excluded is not None:
                    excluded.append("/".join(rel_dir_parts + (d,)) + "/")
                continue
            kept.append(d)
        dirs[:] = kept

        for file_name in sorted(files):
            parts = rel_dir_parts + (file_name,)
            if classify(parts, file_name, exclusions) is PathKind.EXCLUDED:
                logger.debug(f"Excluded: {'/'.join(parts)}")
                if excluded is not None:
                    excluded.append("/".join(parts))
                continue

            yield FileRecord(
                file_path=os.path.join(current, file_name),
                rel_path="/".join(parts),
                ext=file_extension(file_name),
            )


def partition_by_kind(
        records: Iterable[FileRecord],
        exclusions: ExclusionSet,
) -> List[Tuple[FileRecord, PathKind]]:
    """
    Classify every record once so later phases share the same decision.

    Args:
        records: Files produced by yield_source_files().
        exclusions: Exclusion tokens.

    Returns:
        List[Tuple[FileRecord, PathKind]]: Records paired with their kind,
                                           in the original order.
    """
    return [(r, classify(r.parts, r.file_name, exclusions)) for r in records]
