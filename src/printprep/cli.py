"""Command-line interface for printprep."""

from __future__ import annotations

import argparse
import logging
import math
from pathlib import Path
from typing import Sequence

from printprep.aggregate import format_page_list
from printprep.errors import DecodeFailure
from printprep.models import PriceConfig, ProgressEvent, Quote, QuoteRequest, RunConfig
from printprep.pipeline import DEFAULT_JPEG_QUALITY, analyze_pdf
from printprep.price_config import (
    DEFAULT_PRICE_CONFIG,
    load_price_config,
    load_scenarios,
    save_price_config,
    save_scenarios,
)
from printprep.pricing import build_scenario, compute_quote, quote_request_from_stats, remember_scenario
from printprep.processor import process_pdf
from printprep.reporting import build_run_result, write_run_reports

logger = logging.getLogger("printprep")


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser."""
    parser = argparse.ArgumentParser(prog="printprep")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser(
        "analyze",
        help="Classify pages as color or mono and flag bleed and resolution risks.",
    )
    _add_scan_arguments(analyze)

    export = subparsers.add_parser(
        "export",
        help="Rasterize pages to JPEG files tagged with their print DPI.",
    )
    _add_scan_arguments(export)
    export.add_argument(
        "--out",
        default=None,
        help="Directory for exported images. Defaults to --path.",
    )
    export.add_argument(
        "--dpi",
        type=_parse_dpi,
        default=300,
        help="Output resolution in dots per inch. Default: 300.",
    )
    export.add_argument(
        "--target-width-mm",
        type=_parse_positive_float,
        default=None,
        help="Scale every page to this printed width in millimetres instead of its native size.",
    )
    export.add_argument(
        "--thumbnails",
        action="store_true",
        help="Also write 400px-wide preview JPEGs next to each page image.",
    )
    export.add_argument(
        "--jpeg-quality",
        type=_parse_jpeg_quality,
        default=DEFAULT_JPEG_QUALITY,
        help=f"JPEG quality for page images (1-95). Default: {DEFAULT_JPEG_QUALITY}.",
    )

    quote = subparsers.add_parser("quote", help="Price a print run from page counts.")
    source = quote.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--from-pdf",
        default=None,
        help="Analyze this PDF and take page counts from it.",
    )
    source.add_argument(
        "--pages",
        type=_parse_non_negative_int,
        default=None,
        help="Total page count. Requires --color and --mono.",
    )
    quote.add_argument("--color", type=_parse_non_negative_int, default=None, help="Color page count.")
    quote.add_argument("--mono", type=_parse_non_negative_int, default=None, help="Mono page count.")
    quote.add_argument(
        "--quantity",
        type=_parse_non_negative_int,
        default=1,
        help="Number of copies. Default: 1.",
    )
    quote.add_argument("--binding", default="b1", help="Binding option id. Default: b1.")
    quote.add_argument("--paper", default="p1", help="Inner paper option id. Default: p1.")
    quote.add_argument(
        "--addon",
        action="append",
        default=[],
        help="Add-on id to include. Repeat for several add-ons.",
    )
    quote.add_argument(
        "--price-config",
        default=None,
        help="Price configuration JSON file. Defaults to the built-in rules.",
    )
    quote.add_argument(
        "--scenarios",
        default=None,
        help="JSON file of saved quotes. The new quote is added and the three newest are kept.",
    )
    quote.add_argument("--title", default="Quote", help="Title for the saved quote. Default: Quote.")
    quote.add_argument("--verbose", action="store_true", help="Log pricing details.")

    init_config = subparsers.add_parser(
        "init-price-config",
        help="Write the built-in price rules to a JSON file for editing.",
    )
    init_config.add_argument("destination", help="Path of the JSON file to write.")
    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(verbose=bool(getattr(args, "verbose", False)))

    if args.command == "init-price-config":
        path = save_price_config(DEFAULT_PRICE_CONFIG, Path(args.destination))
        print(f"printprep: wrote price configuration to {path}")
        return 0
    if args.command == "quote":
        _validate_quote_args(parser=parser, args=args)
        return _run_quote(args)
    return _run_scan(args)


def main(argv: Sequence[str] | None = None) -> None:
    """Run the CLI as a console entry point."""
    raise SystemExit(run_cli(argv))


def discover_pdfs(path: Path, recursive: bool) -> list[Path]:
    """Discover candidate PDFs for processing."""
    if recursive:
        iterator = sorted(item for item in path.rglob("*") if item.is_file())
    else:
        iterator = sorted(item for item in path.iterdir() if item.is_file())
    return [item for item in iterator if item.suffix.lower() == ".pdf"]


def _run_scan(args: argparse.Namespace) -> int:
    scan_path = Path(args.path)
    out_value = getattr(args, "out", None)
    out_dir = Path(out_value) if out_value is not None else scan_path
    report_dir = Path(args.report_dir) if args.report_dir is not None else scan_path

    config = RunConfig(
        command=str(args.command),
        path=str(scan_path),
        out=str(out_dir),
        report_dir=str(report_dir),
        dpi=int(getattr(args, "dpi", 300)),
        target_width_mm=getattr(args, "target_width_mm", None),
        thumbnails=bool(getattr(args, "thumbnails", False)),
        jpeg_quality=int(getattr(args, "jpeg_quality", DEFAULT_JPEG_QUALITY)),
        recursive=bool(args.recursive),
        verbose=bool(args.verbose),
    )

    run_errors: list[str] = []
    files = []
    if not scan_path.exists() or not scan_path.is_dir():
        run_errors.append(f"Scan path is not a directory: {scan_path}")
    else:
        for pdf_path in discover_pdfs(scan_path, recursive=config.recursive):
            file_result = process_pdf(pdf_path, config=config, progress_sink=_log_progress)
            files.append(file_result)
            if config.verbose:
                print(
                    f"{file_result.status}: {pdf_path} "
                    f"(pages={file_result.pages_processed}, skipped={file_result.pages_skipped})"
                )
                if file_result.stats is not None:
                    stats = file_result.stats
                    print(f"  color: {format_page_list(stats.color_pages) or '-'}")
                    print(f"  mono:  {format_page_list(stats.mono_pages) or '-'}")

    run_result = build_run_result(config=config, files=files, errors=run_errors)
    json_path, txt_path = write_run_reports(run_result=run_result, report_dir=report_dir)

    for error in run_errors:
        print(f"printprep: error: {error}")
    print(f"printprep: processed {len(files)} file(s)")
    print(f"printprep: reports written to {json_path} and {txt_path}")

    has_failures = run_result.totals["files_failed"] > 0 or bool(run_result.errors)
    return 2 if has_failures else 0


def _run_quote(args: argparse.Namespace) -> int:
    try:
        price_config = (
            load_price_config(Path(args.price_config))
            if args.price_config is not None
            else DEFAULT_PRICE_CONFIG
        )
    except (OSError, ValueError) as exc:
        print(f"printprep: error: cannot load price configuration: {exc}")
        return 2

    if args.from_pdf is not None:
        try:
            analysis = analyze_pdf(Path(args.from_pdf), progress_sink=_log_progress)
        except DecodeFailure as exc:
            print(f"printprep: error: {exc}")
            return 2
        request = quote_request_from_stats(
            analysis.stats,
            quantity=args.quantity,
            binding_id=args.binding,
            paper_id=args.paper,
            addon_ids=args.addon,
        )
    else:
        request = QuoteRequest(
            total_pages=args.pages,
            color_pages=args.color,
            mono_pages=args.mono,
            quantity=args.quantity,
            binding_id=args.binding,
            paper_id=args.paper,
            addon_ids=tuple(args.addon),
        )

    quote = _print_quote(price_config, request)
    if args.scenarios is not None:
        return _save_scenario(Path(args.scenarios), args.title, price_config, request, quote)
    return 0


def _print_quote(price_config: PriceConfig, request: QuoteRequest) -> Quote:
    quote = compute_quote(price_config, request)
    print(
        f"pages={request.total_pages} color={request.color_pages} "
        f"mono={request.mono_pages} quantity={request.quantity}"
    )
    print(f"binding={request.binding_id} price={quote.binding_price}")
    print(f"paper={request.paper_id} price={quote.paper_price}")
    print(f"addons={quote.addon_total}")
    print(f"unit_price={quote.unit_price}")
    print(f"total={quote.total}")
    return quote


def _save_scenario(
    path: Path,
    title: str,
    price_config: PriceConfig,
    request: QuoteRequest,
    quote: Quote,
) -> int:
    try:
        scenarios = remember_scenario(
            load_scenarios(path),
            build_scenario(price_config, request, quote, title=title),
        )
        save_scenarios(scenarios, path)
    except (OSError, ValueError) as exc:
        print(f"printprep: error: cannot update scenarios: {exc}")
        return 2

    print(f"saved scenarios ({len(scenarios)}) in {path}:")
    for index, scenario in enumerate(scenarios, start=1):
        print(f"  {index}. {scenario.title} | {scenario.specs} | total={scenario.total}")
    return 0


def _add_scan_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--path", default=".", help="Directory to scan for PDF files.")
    parser.add_argument(
        "--report-dir",
        default=None,
        help="Directory for JSON and text reports. Defaults to --path.",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        help="Scan subdirectories recursively for PDF files.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print per-file processing details.",
    )


def _configure_logging(verbose: bool) -> None:
    """Route printprep logs to stderr and keep pypdf warning spam quiet."""
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)

    pypdf_logger = logging.getLogger("pypdf")
    pypdf_logger.setLevel(logging.ERROR)
    pypdf_logger.propagate = False
    if not any(isinstance(handler, logging.NullHandler) for handler in pypdf_logger.handlers):
        pypdf_logger.addHandler(logging.NullHandler())


def _log_progress(event: ProgressEvent) -> None:
    logger.debug("page %d/%d (%.0f%%)", event.completed, event.total, event.fraction * 100)


def _parse_dpi(value: str) -> int:
    dpi = _parse_int(value, "dpi")
    if not 1 <= dpi <= 0xFFFF:
        raise argparse.ArgumentTypeError("dpi must be between 1 and 65535")
    return dpi


def _parse_jpeg_quality(value: str) -> int:
    quality = _parse_int(value, "JPEG quality")
    if not 1 <= quality <= 95:
        raise argparse.ArgumentTypeError("JPEG quality must be between 1 and 95")
    return quality


def _parse_non_negative_int(value: str) -> int:
    number = _parse_int(value, "count")
    if number < 0:
        raise argparse.ArgumentTypeError("count must be >= 0")
    return number


def _parse_positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("value must be a number in millimetres") from exc
    if not math.isfinite(number) or number <= 0:
        raise argparse.ArgumentTypeError("value must be a finite number > 0 millimetres")
    return number


def _parse_int(value: str, label: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{label} must be an integer") from exc


def _validate_quote_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    """Validate quote argument combinations after parsing."""
    if args.pages is None:
        if args.color is not None or args.mono is not None:
            parser.error("--color and --mono cannot be combined with --from-pdf.")
        return
    if args.color is None or args.mono is None:
        parser.error("--pages requires --color and --mono.")
