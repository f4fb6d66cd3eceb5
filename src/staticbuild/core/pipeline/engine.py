from __future__ import annotations

"""
Core build orchestration pipeline.

Coordinates one complete build run:
1. Validates configuration and normalizes paths.
2. Resets the output root (the only destructive step).
3. Walks and classifies the source tree.
4. Minifies standalone scripts and stylesheets.
5. Transforms markup documents.
6. Mirrors static directories, then (optionally) loose files.
7. Logs and returns the summary.

Each phase finishes before the next one starts. Within a phase files may be
processed by a thread pool; results are aggregated only here.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional, Tuple

from staticbuild.core.pipeline.stages.mirror import copy_other_files, is_in_static_dir, mirror_static_dirs
from staticbuild.core.pipeline.stages.validator import validate_config
from staticbuild.core.pipeline.stages.worker import process_code_file, process_markup_file
from staticbuild.core.services.scanner import partition_by_kind, yield_source_files
from staticbuild.domain.build_models import (
    BuildIssue,
    BuildResult,
    ExclusionSet,
    MirrorStats,
    OutputRootError,
    PathKind,
    create_error_result,
    create_success_result,
    empty_counters,
)
from staticbuild.domain.constants import DEFAULT_OUTPUT_DIR
from staticbuild.infra.fs import normalize_path, reset_output_root

logger = logging.getLogger(__name__)

_CODE_KINDS = (PathKind.CODE_JS, PathKind.CODE_CSS, PathKind.ALREADY_MINIFIED)

_Task = Tuple[Callable[..., Dict[str, Any]], Dict[str, Any]]


def run_build(
        config: Optional[Dict[str, Any]],
        *,
        dry_run: bool = False,
) -> BuildResult:
    """
    Execute a full build.

    Args:
        config: The configuration dictionary (raw or partial).
        dry_run: If True, classify and report without touching the output root.

    Returns:
        BuildResult: ok=False only when the source is missing or the output
                     root could not be established.
    """
    logger.info("Build started." + (" (dry run)" if dry_run else ""))

    # -------------------------------------------------------------------------
    # 1) Config & Path Normalization
    # -------------------------------------------------------------------------
    cfg, config_warnings = validate_config(config or {}, strict=False)
    for warning in config_warnings:
        logger.warning(f"Configuration Warning: {warning}")

    cwd = os.getcwd()
    source_root = normalize_path(cfg.get("source_root"), cwd)
    output_root = normalize_path(cfg.get("output_root"), os.path.join(cwd, DEFAULT_OUTPUT_DIR))

    if not os.path.isdir(source_root):
        msg = f"Invalid source directory: {source_root}"
        logger.error(msg)
        return create_error_result(msg, source_root, output_root, dry_run)

    logger.info(f"Source: {source_root}")
    logger.info(f"Output: {output_root}")

    # -------------------------------------------------------------------------
    # 2) Output Root Reset
    # -------------------------------------------------------------------------
    if not dry_run:
        try:
            reset_output_root(output_root, protected=(source_root,))
        except OutputRootError as e:
            msg = f"Output root could not be established: {e}"
            logger.critical(msg)
            return create_error_result(msg, source_root, output_root, dry_run)

    # -------------------------------------------------------------------------
    # 3) Discovery & Classification
    # -------------------------------------------------------------------------
    exclusions = ExclusionSet.from_lists(cfg["exclude_dirs"], cfg["exclude_names"])
    excluded: List[str] = []
    records = list(yield_source_files(
        source_root, exclusions, skip_dirs=[output_root], excluded=excluded
    ))
    classified = partition_by_kind(records, exclusions)

    counters = empty_counters()
    counters["excluded"] = len(excluded)
    issues: List[BuildIssue] = []
    inline_diagnostics = 0
    workers = cfg["workers"]

    code_files = [(r, k) for r, k in classified if k in _CODE_KINDS]
    markup_files = [r for r, k in classified if k is PathKind.MARKUP]
    other_files = [
        r for r, k in classified
        if k is PathKind.OTHER and not is_in_static_dir(r, cfg["static_dirs"])
    ]
    counters["other_files"] = len(other_files)

    logger.info(
        f"Discovered {len(records)} files: {len(code_files)} code, "
        f"{len(markup_files)} markup, {len(excluded)} excluded."
    )

    # -------------------------------------------------------------------------
    # 4) Code Phase
    # -------------------------------------------------------------------------
    if dry_run:
        for _, kind in code_files:
            counters[_code_counter(kind)] += 1
    else:
        code_tasks: List[_Task] = [
            (process_code_file, {
                "record": record,
                "kind": kind,
                "output_root": output_root,
                "js_backend": cfg["js_backend"],
            })
            for record, kind in code_files
        ]
        for res in _run_phase(code_tasks, workers, "CodeWorker"):
            if res["ok"]:
                counters[_code_counter(res["kind"])] += 1
            else:
                counters["code_failed"] += 1
                issues.append(BuildIssue(res["rel_path"], "code", res["error"]))

    # -------------------------------------------------------------------------
    # 5) Markup Phase
    # -------------------------------------------------------------------------
    if dry_run:
        counters["markup_written"] = len(markup_files)
    else:
        markup_tasks: List[_Task] = [
            (process_markup_file, {
                "record": record,
                "output_root": output_root,
                "js_backend": cfg["js_backend"],
                "preserve_attr": cfg["preserve_attr"],
            })
            for record in markup_files
        ]
        for res in _run_phase(markup_tasks, workers, "MarkupWorker"):
            if res["ok"]:
                counters["markup_written"] += 1
                for diag in res["diagnostics"]:
                    inline_diagnostics += 1
                    issues.append(BuildIssue(res["rel_path"], "inline", diag))
            else:
                counters["markup_failed"] += 1
                issues.append(BuildIssue(res["rel_path"], "markup", res["error"]))

    # -------------------------------------------------------------------------
    # 6) Static Mirror & Loose Files
    # -------------------------------------------------------------------------
    mirror_stats = mirror_static_dirs(
        source_root,
        output_root,
        cfg["static_dirs"],
        exclusions,
        skip_exts=cfg["mirror_skip_exts"],
        dry_run=dry_run,
    )
    _merge_mirror(counters, issues, mirror_stats, "assets_copied")

    if cfg["copy_other_files"]:
        other_stats = copy_other_files(other_files, output_root, cfg["static_dirs"], dry_run=dry_run)
        _merge_mirror(counters, issues, other_stats, "other_copied")

    # -------------------------------------------------------------------------
    # 7) Summary
    # -------------------------------------------------------------------------
    issues.sort(key=lambda i: (i.rel_path, i.stage))
    warnings = len(config_warnings) + len(issues)

    _log_summary(counters, dry_run)
    if issues:
        logger.warning(f"Build finished with {len(issues)} issue(s).")

    return create_success_result(
        source_root=source_root,
        output_root=output_root,
        counters=counters,
        issues=issues,
        warnings=warnings,
        dry_run=dry_run,
        summary_extra={
            "config_warnings": list(config_warnings),
            "inline_diagnostics": inline_diagnostics,
            "js_backend": cfg["js_backend"],
            "workers": workers,
        },
    )


# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _run_phase(tasks: List[_Task], workers: int, name: str) -> List[Dict[str, Any]]:
    """
    Run the tasks of one phase and collect their status dictionaries.

    Results are returned sorted by relative path so that aggregation does
    not depend on thread scheduling.
    """
    if workers <= 1 or len(tasks) <= 1:
        results = [fn(**kwargs) for fn, kwargs in tasks]
    else:
        results = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=name) as executor:
            futures = [executor.submit(fn, **kwargs) for fn, kwargs in tasks]
            for future in as_completed(futures):
                results.append(future.result())

    return sorted(results, key=lambda r: r["rel_path"])


def _code_counter(kind: PathKind) -> str:
    if kind is PathKind.CODE_JS:
        return "js_minified"
    if kind is PathKind.CODE_CSS:
        return "css_minified"
    return "already_minified"


def _merge_mirror(counters: Dict[str, int], issues: List[BuildIssue], stats: MirrorStats, key: str) -> None:
    counters[key] += stats.copied
    counters["assets_skipped"] += stats.skipped_existing
    issues.extend(stats.issues)


def _log_summary(counters: Dict[str, int], dry_run: bool) -> None:
    prefix = "Dry run plan" if dry_run else "Build complete"
    logger.info(
        f"{prefix}: {counters['js_minified']} JS, {counters['css_minified']} CSS minified, "
        f"{counters['already_minified']} pre-minified copied, "
        f"{counters['markup_written']} HTML written ({counters['markup_failed']} failed), "
        f"{counters['assets_copied']} assets copied ({counters['assets_skipped']} kept), "
        f"{counters['other_files']} other files, {counters['excluded']} excluded."
    )
