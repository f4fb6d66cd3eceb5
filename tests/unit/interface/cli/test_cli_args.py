from __future__ import annotations

"""
Unit tests for CLI Argument Parsing.

Verifies:
1. Mapping of CLI flags to configuration keys.
2. CSV string parsing logic.
3. Only given options appear in the overrides.
"""

import pytest

from staticbuild.interface.cli.args import _split_csv, args_to_overrides, build_parser


def parse_args(arg_list):
    """Helper to simulate CLI argument parsing."""
    parser = build_parser()
    return parser.parse_args(arg_list)


def test_cli_positional_paths():
    overrides = args_to_overrides(parse_args(["site", "build"]))

    assert overrides["source_root"] == "site"
    assert overrides["output_root"] == "build"


def test_cli_csv_list_parsing():
    """Verify comma-separated strings are parsed into lists."""
    args = parse_args([
        "--exclude-dirs", "node_modules, .git",
        "--exclude-names", "package.json",
        "--static-dirs", "assets,,media",
    ])

    overrides = args_to_overrides(args)

    assert overrides["exclude_dirs"] == ["node_modules", ".git"]
    assert overrides["exclude_names"] == ["package.json"]
    assert overrides["static_dirs"] == ["assets", "media"]


def test_cli_empty_static_dirs_is_explicit():
    overrides = args_to_overrides(parse_args(["--static-dirs", ""]))
    assert overrides["static_dirs"] == []


def test_cli_processing_flags():
    overrides = args_to_overrides(parse_args([
        "--js-backend", "terser",
        "--workers", "4",
        "--copy-other-files",
    ]))

    assert overrides["js_backend"] == "terser"
    assert overrides["workers"] == 4
    assert overrides["copy_other_files"] is True


def test_cli_rejects_unknown_backend():
    with pytest.raises(SystemExit):
        parse_args(["--js-backend", "uglify"])


def test_cli_no_arguments_yield_no_overrides():
    """Defaults come from the config layer, not from argparse."""
    args = parse_args([])

    assert args_to_overrides(args) == {}
    assert args.dry_run is False
    assert args.json_output is False
    assert args.config_file is None


def test_split_csv():
    assert _split_csv(None) is None
    assert _split_csv(" a , b ,") == ["a", "b"]
