from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line schema and translates the parsed namespace into
configuration overrides understood by the build engine.
"""

import argparse
from typing import Any, Dict, List, Optional

from staticbuild.domain.constants import APP_VERSION, JS_BACKENDS

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the StaticBuild CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="staticbuild",
        description="Minify scripts, styles and HTML of a static site into a clean output tree.",
    )

    # --- Path Management ---
    p.add_argument(
        "source_root",
        nargs="?",
        default=None,
        help="Source directory (default: current directory).",
    )
    p.add_argument(
        "output_root",
        nargs="?",
        default=None,
        help="Output directory, wiped on every run (default: ./dist).",
    )
    p.add_argument(
        "--config",
        dest="config_file",
        default=None,
        help="JSON configuration file merged over the defaults.",
    )

    # --- Selection ---
    p.add_argument(
        "--exclude-dirs",
        dest="exclude_dirs",
        default=None,
        help="Comma-separated directory names never walked.",
    )
    p.add_argument(
        "--exclude-names",
        dest="exclude_names",
        default=None,
        help="Comma-separated file names never processed or copied.",
    )
    p.add_argument(
        "--static-dirs",
        dest="static_dirs",
        default=None,
        help="Comma-separated top-level directories whose contents are mirrored.",
    )
    p.add_argument(
        "--copy-other-files",
        action="store_true",
        help="Also copy files outside the static directories.",
    )

    # --- Processing ---
    p.add_argument(
        "--js-backend",
        dest="js_backend",
        choices=JS_BACKENDS,
        default=None,
        help="JavaScript minifier. auto (default) uses terser when it is on PATH, else rjsmin.",
    )
    p.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Threads used inside each build phase.",
    )

    # --- Runtime and Diagnostics ---
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the build plan without touching the output directory.",
    )
    p.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the effective configuration and exit.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )
    p.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Also write a rotating log file at this path.",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the build result as JSON.",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {APP_VERSION}",
    )

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into configuration overrides.

    Only options actually given on the command line appear in the result.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset.
    """
    overrides: Dict[str, Any] = {}

    if args.source_root:
        overrides["source_root"] = args.source_root
    if args.output_root:
        overrides["output_root"] = args.output_root

    if args.exclude_dirs is not None:
        overrides["exclude_dirs"] = _split_csv(args.exclude_dirs)
    if args.exclude_names is not None:
        overrides["exclude_names"] = _split_csv(args.exclude_names)
    if args.static_dirs is not None:
        overrides["static_dirs"] = _split_csv(args.static_dirs)
    if args.copy_other_files:
        overrides["copy_other_files"] = True

    if args.js_backend:
        overrides["js_backend"] = args.js_backend
    if args.workers is not None:
        overrides["workers"] = args.workers

    return overrides

# -----------------------------------------------------------------------------
# HELPERS
# -----------------------------------------------------------------------------

def _split_csv(value: Optional[str]) -> Optional[List[str]]:
    """
    Convert a comma-separated string into a list of sanitized strings.
    """
    if value is None:
        return None
    parts = [x.strip() for x in value.split(",")]
    return [x for x in parts if x]
