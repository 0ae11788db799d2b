"""Single-file processing for the printprep CLI."""

from __future__ import annotations

import logging
from pathlib import Path
from time import perf_counter

from printprep.aggregate import issue_pages
from printprep.errors import DecodeFailure
from printprep.models import FileResult, RasterSpec, RunConfig
from printprep.pipeline import CancelCheck, ProgressSink, analyze_pdf, export_pdf_pages, read_document_info

logger = logging.getLogger(__name__)


def process_pdf(
    input_path: Path,
    config: RunConfig,
    progress_sink: ProgressSink | None = None,
    should_cancel: CancelCheck | None = None,
) -> FileResult:
    """Analyze or export one PDF and return a structured file result."""
    run_start = perf_counter()
    timings: dict[str, float] = {}
    try:
        if config.command == "export":
            return _export(input_path, config, run_start, timings, progress_sink, should_cancel)
        return _analyze(input_path, run_start, timings, progress_sink, should_cancel)
    except DecodeFailure as exc:
        logger.error("Cannot process %s: %s", input_path, exc)
        error = f"decode_error: {exc}"
    except OSError as exc:
        logger.error("Cannot write output for %s: %s", input_path, exc)
        error = f"write_error: {exc}"

    timings["total_seconds"] = round(perf_counter() - run_start, 6)
    return FileResult(
        input_path=str(input_path),
        status="failed",
        pages_original=0,
        pages_processed=0,
        pages_skipped=0,
        skipped_pages=[],
        stats=None,
        page_analyses=[],
        exported_pages=[],
        warnings=[],
        errors=[error],
        timings=timings,
    )


def _analyze(
    input_path: Path,
    run_start: float,
    timings: dict[str, float],
    progress_sink: ProgressSink | None,
    should_cancel: CancelCheck | None,
) -> FileResult:
    document = read_document_info(input_path)
    result = analyze_pdf(input_path, progress_sink=progress_sink, should_cancel=should_cancel)
    timings["total_seconds"] = round(perf_counter() - run_start, 6)

    warnings = _skip_warnings(result.skipped_pages)
    stats = result.stats
    if stats.total and not stats.is_bleed:
        warnings.append("Page size may not include bleed; content near the trim edge can be cut.")
    if stats.has_low_res:
        warnings.append("Some pages are below print resolution and may print blurred.")

    return FileResult(
        input_path=str(input_path),
        status="cancelled" if result.cancelled else "analyzed",
        pages_original=result.page_count,
        pages_processed=len(result.analyses),
        pages_skipped=len(result.skipped_pages),
        skipped_pages=result.skipped_pages,
        stats=stats,
        page_analyses=result.analyses,
        exported_pages=[],
        warnings=warnings,
        errors=[],
        timings=timings,
        document=document,
        issue_pages=[analysis.page_number for analysis in issue_pages(result.analyses)],
    )


def _export(
    input_path: Path,
    config: RunConfig,
    run_start: float,
    timings: dict[str, float],
    progress_sink: ProgressSink | None,
    should_cancel: CancelCheck | None,
) -> FileResult:
    spec = RasterSpec(dpi=config.dpi, target_width_mm=config.target_width_mm)
    result = export_pdf_pages(
        input_path,
        out_dir=Path(config.out),
        spec=spec,
        thumbnails=config.thumbnails,
        jpeg_quality=config.jpeg_quality,
        progress_sink=progress_sink,
        should_cancel=should_cancel,
    )
    timings["total_seconds"] = round(perf_counter() - run_start, 6)
    return FileResult(
        input_path=str(input_path),
        status="cancelled" if result.cancelled else "exported",
        pages_original=result.page_count,
        pages_processed=len(result.pages),
        pages_skipped=len(result.skipped_pages),
        skipped_pages=result.skipped_pages,
        stats=None,
        page_analyses=[],
        exported_pages=result.pages,
        warnings=_skip_warnings(result.skipped_pages),
        errors=[],
        timings=timings,
    )


def _skip_warnings(skipped_pages: list[int]) -> list[str]:
    return [f"Page {page_number} could not be rendered and was skipped." for page_number in skipped_pages]
