from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Provides path normalization, the destructive output-root reset (with its
manual fallback deletion strategy) and the small read/write/copy helpers
used by the per-file workers. Every write creates its parent directories.
"""

import logging
import os
import shutil
import stat
from typing import Optional, Tuple

from staticbuild.domain.build_models import OutputRootError

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a directory path string into an absolute filesystem path.

    Handles environment variable expansion ($VAR/%VAR%) and user home
    shortcuts (~/). Reverts to fallback if the input is empty.

    Args:
        path: Raw input path string.
        fallback: Default path to use if the input is empty.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip()
    if not p:
        p = fallback
    p = os.path.expandvars(os.path.expanduser(p))
    return os.path.abspath(p)


def is_within(path: str, parent: str) -> bool:
    """True if 'path' is 'parent' itself or located below it."""
    path_abs = os.path.normcase(os.path.abspath(path))
    parent_abs = os.path.normcase(os.path.abspath(parent))
    try:
        return os.path.commonpath([path_abs, parent_abs]) == parent_abs
    except ValueError:
        # Different drives on Windows
        return False


def to_posix_rel(path: str, root: str) -> str:
    """Relative path of 'path' under 'root' using '/' separators."""
    return os.path.relpath(path, root).replace(os.sep, "/")

# -----------------------------------------------------------------------------
# OUTPUT ROOT MANAGEMENT
# -----------------------------------------------------------------------------

def delete_tree(path: str) -> None:
    """
    Remove a directory tree, retrying with a manual walk if rmtree fails.

    The primary strategy is shutil.rmtree. On any OSError the tree is
    removed entry by entry (lstat, recurse into directories, unlink the
    rest), clearing read-only bits on the way.

    Args:
        path: Directory (or file) to remove. Missing paths are ignored.

    Raises:
        OutputRootError: If both strategies fail.
    """
    if not os.path.lexists(path):
        return

    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.unlink(path)
        return
    except OSError as e:
        logger.warning(f"Primary delete failed for {path}: {e}. Retrying manually.")

    try:
        _manual_delete(path)
    except OSError as e:
        raise OutputRootError(f"Cannot delete '{path}': {e}") from e


def reset_output_root(output_root: str, protected: Tuple[str, ...] = ()) -> None:
    """
    Establish a clean, empty output root.

    Deletes the directory if it exists and recreates it with all its
    ancestors. Refuses to operate on the filesystem root, the user's home
    directory, or any protected path (or one of its ancestors).

    Args:
        output_root: Absolute destination directory.
        protected: Paths that must survive (typically the source root).

    Raises:
        OutputRootError: If the path is unsafe or cannot be deleted/created.
    """
    target = os.path.abspath(output_root)

    unsafe = {os.path.abspath(os.sep), os.path.abspath(os.path.expanduser("~"))}
    if os.path.normcase(target) in {os.path.normcase(u) for u in unsafe}:
        raise OutputRootError(f"Refusing to reset unsafe output root: {target}")

    for p in protected:
        if is_within(p, target):
            raise OutputRootError(f"Output root '{target}' contains protected path '{p}'.")

    if os.path.lexists(target):
        logger.info(f"Cleaning {target}")
        delete_tree(target)

    try:
        os.makedirs(target, exist_ok=True)
    except OSError as e:
        raise OutputRootError(f"Cannot create output root '{target}': {e}") from e

# -----------------------------------------------------------------------------
# FILE OPERATIONS
# -----------------------------------------------------------------------------

def ensure_parent_dir(path: str) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    if parent:
        os.makedirs(parent, exist_ok=True)


def read_text_file(path: str) -> str:
    """
    Read a UTF-8 text file without newline translation.

    Raises:
        OSError, UnicodeDecodeError: Propagated to the worker.
    """
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_text_file(path: str, content: str) -> None:
    """Write UTF-8 text verbatim (no newline translation), creating parents."""
    ensure_parent_dir(path)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


def copy_file(src: str, dest: str) -> None:
    """Byte-identical copy (with metadata), creating parent directories."""
    ensure_parent_dir(dest)
    shutil.copy2(src, dest)

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _manual_delete(path: str) -> None:
    """Depth-first removal using lstat so symlinks are unlinked, not followed."""
    st = os.lstat(path)
    if stat.S_ISDIR(st.st_mode):
        _make_writable(path)
        for name in os.listdir(path):
            _manual_delete(os.path.join(path, name))
        os.rmdir(path)
    else:
        if not stat.S_ISLNK(st.st_mode):
            _make_writable(path)
        os.unlink(path)


def _make_writable(path: str) -> None:
    try:
        os.chmod(path, stat.S_IWRITE | stat.S_IREAD | stat.S_IEXEC)
    except OSError:
        # The subsequent unlink/rmdir reports the real failure
        pass
