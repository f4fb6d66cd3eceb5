from __future__ import annotations

"""
Unit tests for the Source Tree Discovery Service.

Verifies:
1. Excluded directories are pruned and excluded files never emitted.
2. Deterministic lexicographic order.
3. Skip directories (nested output roots) are not walked.
"""

from pathlib import Path
from typing import List

from staticbuild.core.services.scanner import partition_by_kind, yield_source_files
from staticbuild.domain.build_models import ExclusionSet, PathKind

EXCLUSIONS = ExclusionSet.from_lists(["node_modules", "dist"], ["package.json"])


def _make(root: Path, rel: str, content: str = "x") -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_walk_prunes_excluded_dirs_and_names(tmp_path: Path) -> None:
    """TC-01: Nothing below an excluded directory is ever emitted."""
    _make(tmp_path, "index.html")
    _make(tmp_path, "package.json")
    _make(tmp_path, "node_modules/dep/index.js")
    _make(tmp_path, "sub/node_modules/x.css")
    _make(tmp_path, "sub/app.js")

    excluded: List[str] = []
    rels = [r.rel_path for r in yield_source_files(str(tmp_path), EXCLUSIONS, excluded=excluded)]

    assert rels == ["index.html", "sub/app.js"]
    assert "package.json" in excluded
    assert "node_modules/" in excluded
    assert "sub/node_modules/" in excluded


def test_walk_order_is_lexicographic(tmp_path: Path) -> None:
    """TC-02: Entries are visited in sorted order at every level."""
    for rel in ["b.js", "a.js", "z/1.css", "c/2.css", "c/1.css"]:
        _make(tmp_path, rel)

    rels = [r.rel_path for r in yield_source_files(str(tmp_path), EXCLUSIONS)]

    assert rels == ["a.js", "b.js", "c/1.css", "c/2.css", "z/1.css"]


def test_walk_skips_nested_output_root(tmp_path: Path) -> None:
    """TC-03: A build output inside the source tree is not walked."""
    _make(tmp_path, "index.html")
    _make(tmp_path, "build/index.html")

    records = list(yield_source_files(
        str(tmp_path), EXCLUSIONS, skip_dirs=[str(tmp_path / "build")]
    ))

    assert [r.rel_path for r in records] == ["index.html"]


def test_file_record_fields(tmp_path: Path) -> None:
    _make(tmp_path, "Css/Site.CSS")

    record = next(yield_source_files(str(tmp_path), EXCLUSIONS))

    assert record.rel_path == "Css/Site.CSS"
    assert record.ext == ".css"
    assert record.file_name == "Site.CSS"
    assert record.parts == ("Css", "Site.CSS")
    assert Path(record.file_path) == tmp_path / "Css" / "Site.CSS"


def test_partition_by_kind_keeps_order(tmp_path: Path) -> None:
    for rel in ["a.min.js", "b.js", "c.html", "d.png"]:
        _make(tmp_path, rel)

    pairs = partition_by_kind(yield_source_files(str(tmp_path), EXCLUSIONS), EXCLUSIONS)

    assert [k for _, k in pairs] == [
        PathKind.ALREADY_MINIFIED, PathKind.CODE_JS, PathKind.MARKUP, PathKind.OTHER,
    ]


def test_walk_of_empty_tree_yields_nothing(tmp_path: Path) -> None:
    assert list(yield_source_files(str(tmp_path), EXCLUSIONS)) == []
