"""Run report generation for printprep."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
import getpass
import json
from pathlib import Path
import platform
import sys
from typing import Any

import PIL
import pypdf

from printprep.aggregate import format_page_list
from printprep.models import FileResult, JSONValue, RunConfig, RunResult
from printprep.rasterize import get_render_backend_version


def build_run_result(
    config: RunConfig,
    files: list[FileResult],
    warnings: list[str] | None = None,
    errors: list[str] | None = None,
) -> RunResult:
    """Build an aggregated run result with environment metadata."""
    now_utc = datetime.now(timezone.utc)
    now_local = now_utc.astimezone()
    return RunResult(
        timestamp_local=now_local.isoformat(),
        timestamp_utc=now_utc.isoformat(),
        user=_current_user(),
        host=platform.node(),
        python_version=sys.version.split()[0],
        pypdf_version=pypdf.__version__,
        pypdfium2_version=get_render_backend_version(),
        pillow_version=PIL.__version__,
        config=config,
        files=files,
        totals=_build_totals(files),
        warnings=list(warnings or []),
        errors=list(errors or []),
    )


def write_run_reports(run_result: RunResult, report_dir: Path) -> tuple[Path, Path]:
    """Write machine-readable and text run reports."""
    report_dir.mkdir(parents=True, exist_ok=True)
    timestamp = _timestamp_for_filename(run_result.timestamp_local)
    json_path = _unique_path(report_dir, f"run_report_{timestamp}", ".json")
    txt_path = json_path.with_suffix(".txt")

    json_path.write_text(
        json.dumps(run_result_to_dict(run_result), indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    txt_path.write_text(_text_report(run_result), encoding="utf-8")
    return json_path, txt_path


def run_result_to_dict(run_result: RunResult) -> dict[str, JSONValue]:
    """Convert a run result to a JSON-serializable dictionary."""
    serialized = _serialize_value(run_result)
    if not isinstance(serialized, dict):
        raise TypeError("RunResult serialization must produce a dictionary.")
    return serialized


def _build_totals(files: list[FileResult]) -> dict[str, int]:
    totals = {
        "files_found": len(files),
        "files_processed": sum(1 for file in files if file.status != "failed"),
        "files_failed": sum(1 for file in files if file.status == "failed"),
        "files_cancelled": sum(1 for file in files if file.status == "cancelled"),
        "pages_original_total": sum(file.pages_original for file in files),
        "pages_processed_total": sum(file.pages_processed for file in files),
        "pages_skipped_total": sum(file.pages_skipped for file in files),
        "images_written_total": sum(len(file.exported_pages) for file in files),
        "color_pages_total": 0,
        "mono_pages_total": 0,
        "files_without_bleed": 0,
        "files_with_low_res": 0,
    }
    for file_result in files:
        stats = file_result.stats
        if stats is None:
            continue
        totals["color_pages_total"] += stats.color_count
        totals["mono_pages_total"] += stats.mono_count
        if stats.total and not stats.is_bleed:
            totals["files_without_bleed"] += 1
        if stats.has_low_res:
            totals["files_with_low_res"] += 1
    return totals


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def _timestamp_for_filename(timestamp_local: str) -> str:
    return datetime.fromisoformat(timestamp_local).strftime("%Y%m%d_%H%M%S")


def _unique_path(report_dir: Path, stem: str, suffix: str) -> Path:
    candidate = report_dir / f"{stem}{suffix}"
    counter = 1
    while candidate.exists():
        candidate = report_dir / f"{stem}_{counter}{suffix}"
        counter += 1
    return candidate


def _text_report(run_result: RunResult) -> str:
    config = run_result.config
    lines = [
        "printprep Run Report",
        "",
        f"Timestamp (local): {run_result.timestamp_local}",
        f"Timestamp (UTC):   {run_result.timestamp_utc}",
        f"User:              {run_result.user}",
        f"Host:              {run_result.host}",
        f"Python:            {run_result.python_version}",
        f"pypdf:             {run_result.pypdf_version}",
        f"pypdfium2:         {run_result.pypdfium2_version or 'unknown'}",
        f"Pillow:            {run_result.pillow_version}",
        "",
        "Config:",
        f"  command={config.command}",
        f"  path={config.path}",
        f"  out={config.out}",
        f"  report_dir={config.report_dir}",
        f"  dpi={config.dpi}",
        f"  target_width_mm={config.target_width_mm}",
        f"  thumbnails={config.thumbnails}",
        f"  jpeg_quality={config.jpeg_quality}",
        f"  recursive={config.recursive}",
        f"  verbose={config.verbose}",
        "",
        "Totals:",
    ]

    for key, value in run_result.totals.items():
        lines.append(f"  {key}={value}")

    if run_result.warnings:
        lines.extend(["", "Run warnings:"])
        lines.extend(f"  - {warning}" for warning in run_result.warnings)

    if run_result.errors:
        lines.extend(["", "Run errors:"])
        lines.extend(f"  - {error}" for error in run_result.errors)

    lines.extend(["", "Files:", _file_table(run_result.files)])

    for file_result in run_result.files:
        lines.extend(
            [
                "",
                f"[{file_result.status}] {file_result.input_path}",
                f"  pages_original={file_result.pages_original}",
                f"  pages_processed={file_result.pages_processed}",
                f"  pages_skipped={file_result.pages_skipped}",
                f"  timings={file_result.timings}",
            ]
        )
        if file_result.skipped_pages:
            lines.append(f"  skipped_pages={format_page_list(file_result.skipped_pages)}")
        document = file_result.document
        if document is not None and document.first_page_width_mm is not None:
            lines.append(
                f"  first_page_size={document.first_page_width_mm} x {document.first_page_height_mm} mm"
            )
        stats = file_result.stats
        if stats is not None:
            lines.extend(
                [
                    f"  main_size={stats.main_size or '-'}",
                    f"  bleed={'yes' if stats.is_bleed else 'NO'}",
                    f"  low_res={'YES' if stats.has_low_res else 'no'}",
                    f"  spine={stats.spine}",
                    f"  color_pages({stats.color_count})={format_page_list(stats.color_pages) or '-'}",
                    f"  mono_pages({stats.mono_count})={format_page_list(stats.mono_pages) or '-'}",
                    f"  issue_pages={format_page_list(file_result.issue_pages) or '-'}",
                ]
            )
        for exported in file_result.exported_pages:
            lines.append(
                f"  P{exported.page_number}: {exported.output_width_px}x{exported.output_height_px}px "
                f"{exported.output_width_mm}x{exported.output_height_mm}mm @ {exported.dpi}dpi "
                f"-> {exported.output_path}"
            )
        if file_result.warnings:
            lines.extend(f"  warning: {warning}" for warning in file_result.warnings)
        if file_result.errors:
            lines.extend(f"  error: {error}" for error in file_result.errors)

    return "\n".join(lines) + "\n"


def _file_table(files: list[FileResult]) -> str:
    if not files:
        return "status   pages   skipped   input\n(no PDF files found)"

    header = f"{'status':<10} {'pages':>7} {'skipped':>7} input"
    rows = [
        f"{file.status:<10} {file.pages_processed:>7} {file.pages_skipped:>7} {file.input_path}"
        for file in files
    ]
    return "\n".join([header, *rows])


def _serialize_value(value: Any) -> JSONValue:
    if is_dataclass(value):
        return {
            str(key): _serialize_value(item)
            for key, item in asdict(value).items()
        }
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {
            str(key): _serialize_value(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_serialize_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)
