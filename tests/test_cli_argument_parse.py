"""CLI argument parsing tests."""

from __future__ import annotations

import pytest

from printprep.cli import build_parser, run_cli


def test_export_defaults_to_300_dpi_native_size() -> None:
    args = build_parser().parse_args(["export"])
    assert args.dpi == 300
    assert args.target_width_mm is None
    assert args.jpeg_quality == 95


def test_export_parses_target_width() -> None:
    args = build_parser().parse_args(["export", "--target-width-mm", "148.5"])
    assert args.target_width_mm == 148.5


@pytest.mark.parametrize(
    "argv",
    [
        ["export", "--target-width-mm", "0"],
        ["export", "--target-width-mm", "wide"],
        ["export", "--target-width-mm", "inf"],
        ["export", "--target-width-mm", "nan"],
        ["export", "--dpi", "0"],
        ["export", "--dpi", "70000"],
        ["export", "--jpeg-quality", "100"],
        ["quote", "--pages", "-1", "--color", "0", "--mono", "0"],
        ["quote"],
    ],
)
def test_invalid_arguments_exit_with_usage_error(argv: list[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        build_parser().parse_args(argv)
    assert exc_info.value.code == 2


def test_quote_pages_requires_color_and_mono() -> None:
    with pytest.raises(SystemExit) as exc_info:
        run_cli(["quote", "--pages", "10"])
    assert exc_info.value.code == 2


def test_quote_addons_accumulate() -> None:
    args = build_parser().parse_args(
        ["quote", "--pages", "1", "--color", "0", "--mono", "1", "--addon", "a1", "--addon", "a3"]
    )
    assert args.addon == ["a1", "a3"]


def test_quote_scenario_title_defaults() -> None:
    args = build_parser().parse_args(["quote", "--pages", "1", "--color", "0", "--mono", "1"])
    assert args.scenarios is None
    assert args.title == "Quote"
