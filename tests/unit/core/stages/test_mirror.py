from __future__ import annotations

"""
Unit tests for the Static Asset Mirror Stage.

Verifies:
1. Contents are copied into the same-named directory (no assets/assets).
2. Code extensions and excluded names are never raw-copied.
3. Existing destinations are never overwritten.
4. Loose files outside static directories are copied only on request.
"""

from pathlib import Path
from unittest.mock import patch

from staticbuild.core.pipeline.stages.mirror import (
    copy_other_files,
    is_in_static_dir,
    mirror_static_dirs,
)
from staticbuild.domain.build_models import ExclusionSet, FileRecord

EXCLUSIONS = ExclusionSet.from_lists(["node_modules"], ["package.json"])
STATIC = ["assets", "images", "public"]


def test_mirror_copies_contents_not_the_node(site_tree: Path, tmp_path: Path) -> None:
    """TC-01: assets/logo.svg lands at out/assets/logo.svg, never out/assets/assets."""
    out = tmp_path / "out"
    stats = mirror_static_dirs(str(site_tree), str(out), STATIC, EXCLUSIONS)

    assert (out / "assets" / "logo.svg").read_text(encoding="utf-8") == "<svg></svg>"
    assert (out / "assets" / "fonts" / "a.woff2").read_bytes() == b"\x00\x01binary"
    assert not (out / "assets" / "assets").exists()
    assert stats.copied == 2


def test_mirror_skips_code_files(site_tree: Path, tmp_path: Path) -> None:
    """TC-02: Scripts and stylesheets are left to the minifier."""
    out = tmp_path / "out"
    stats = mirror_static_dirs(str(site_tree), str(out), STATIC, EXCLUSIONS)

    assert not (out / "assets" / "site.css").exists()
    assert stats.skipped_code == 1


def test_mirror_never_overwrites(site_tree: Path, tmp_path: Path) -> None:
    """TC-03: First writer wins."""
    out = tmp_path / "out"
    (out / "assets").mkdir(parents=True)
    (out / "assets" / "logo.svg").write_text("minified", encoding="utf-8")

    stats = mirror_static_dirs(str(site_tree), str(out), STATIC, EXCLUSIONS)

    assert (out / "assets" / "logo.svg").read_text(encoding="utf-8") == "minified"
    assert stats.skipped_existing == 1


def test_mirror_skips_excluded_names_and_dirs(tmp_path: Path) -> None:
    src = tmp_path / "src"
    (src / "public" / "node_modules").mkdir(parents=True)
    (src / "public" / "package.json").write_text("{}", encoding="utf-8")
    (src / "public" / "node_modules" / "x.txt").write_text("x", encoding="utf-8")
    (src / "public" / "ok.txt").write_text("ok", encoding="utf-8")
    out = tmp_path / "out"

    stats = mirror_static_dirs(str(src), str(out), STATIC, EXCLUSIONS)

    assert (out / "public" / "ok.txt").exists()
    assert not (out / "public" / "package.json").exists()
    assert not (out / "public" / "node_modules").exists()
    assert stats.skipped_excluded == 1


def test_mirror_ignores_missing_static_dirs(tmp_path: Path) -> None:
    stats = mirror_static_dirs(str(tmp_path), str(tmp_path / "out"), STATIC, EXCLUSIONS)
    assert stats.copied == 0
    assert not (tmp_path / "out").exists()


def test_mirror_dry_run_copies_nothing(site_tree: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    stats = mirror_static_dirs(str(site_tree), str(out), STATIC, EXCLUSIONS, dry_run=True)

    assert stats.copied == 2
    assert not out.exists()


def test_mirror_records_copy_failures(site_tree: Path, tmp_path: Path) -> None:
    with patch("staticbuild.core.pipeline.stages.mirror.copy_file", side_effect=OSError("disk full")):
        stats = mirror_static_dirs(str(site_tree), str(tmp_path / "out"), STATIC, EXCLUSIONS)

    assert stats.copied == 0
    assert len(stats.issues) == 2
    assert stats.issues[0].stage == "mirror"
    assert "disk full" in stats.issues[0].error


# -----------------------------------------------------------------------------
# Loose files
# -----------------------------------------------------------------------------

def _record(root: Path, rel: str) -> FileRecord:
    return FileRecord(file_path=str(root / rel), rel_path=rel, ext=Path(rel).suffix)


def test_is_in_static_dir() -> None:
    assert is_in_static_dir(FileRecord("/x/assets/a.png", "assets/a.png", ".png"), STATIC)
    assert not is_in_static_dir(FileRecord("/x/assets", "assets", ""), STATIC)
    assert not is_in_static_dir(FileRecord("/x/docs/a.png", "docs/a.png", ".png"), STATIC)


def test_copy_other_files(site_tree: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    records = [_record(site_tree, "robots.txt"), _record(site_tree, "assets/logo.svg")]

    stats = copy_other_files(records, str(out), STATIC)

    assert (out / "robots.txt").read_text(encoding="utf-8") == "User-agent: *\n"
    assert not (out / "assets" / "logo.svg").exists()
    assert stats.copied == 1
