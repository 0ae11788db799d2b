"""Per-document orchestration of the analysis and export passes.

Pages are processed strictly in order, one at a time. Each page's bitmap is
released before the next page is opened, progress is reported after every
page (skipped pages included), and cancellation is honoured between pages.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import replace
from io import BytesIO
import logging
from pathlib import Path
from typing import Any

from pypdf import PdfReader
import pypdfium2 as pdfium

from printprep.aggregate import aggregate
from printprep.classify import ANALYSIS_SCALE, classify
from printprep.density import inject_density
from printprep.errors import DecodeFailure, RenderFailure
from printprep.models import (
    AnalysisResult,
    DocumentInfo,
    ExportedPage,
    ExportResult,
    PageAnalysis,
    PageGeometry,
    PageOutcome,
    ProgressEvent,
    RasterSpec,
)
from printprep.rasterize import page_geometry, rasterize, render_at_scale, render_preview
from printprep.units import points_to_mm

logger = logging.getLogger(__name__)

ProgressSink = Callable[[ProgressEvent], None]
CancelCheck = Callable[[], bool]

DEFAULT_JPEG_QUALITY = 95
THUMBNAIL_JPEG_QUALITY = 70


def open_document(source: Path | str | bytes) -> Any:
    """Open a PDF with PDFium or raise :class:`DecodeFailure`."""
    pdf_input = str(source) if isinstance(source, Path) else source
    try:
        return pdfium.PdfDocument(pdf_input)
    except Exception as exc:
        raise DecodeFailure(f"cannot open document: {exc}") from exc


def read_document_info(input_path: Path) -> DocumentInfo:
    """Read page count and first-page size without rendering anything."""
    try:
        reader = PdfReader(str(input_path))
        if reader.is_encrypted:
            raise DecodeFailure("encrypted")
        page_count = len(reader.pages)
        if page_count == 0:
            return DocumentInfo(page_count=0, first_page_width_mm=None, first_page_height_mm=None)
        first_page = reader.pages[0]
        box = first_page.cropbox
        width = float(box.width)
        height = float(box.height)
        if first_page.rotation % 180 == 90:
            width, height = height, width
    except DecodeFailure:
        raise
    except Exception as exc:
        raise DecodeFailure(f"read_error: {exc}") from exc

    return DocumentInfo(
        page_count=page_count,
        first_page_width_mm=points_to_mm(width),
        first_page_height_mm=points_to_mm(height),
    )


def analyze_page(page: Any, page_number: int) -> PageAnalysis:
    """Render a reduced bitmap of one page and classify it."""
    geometry = _geometry_or_fail(page, page_number)
    image = render_at_scale(page, geometry, ANALYSIS_SCALE, page_number=page_number)
    try:
        rgba_image = image.convert("RGBA")
        try:
            rgba = rgba_image.tobytes()
        finally:
            rgba_image.close()
    finally:
        image.close()
    classification = classify(rgba, geometry.width_pt, geometry.height_pt)
    return PageAnalysis(
        page_number=page_number,
        is_color=classification.is_color,
        is_low_res=classification.is_low_res,
        width_mm=geometry.width_mm,
        height_mm=geometry.height_mm,
    )


def export_page(
    page: Any,
    page_number: int,
    spec: RasterSpec,
    out_dir: Path,
    stem: str,
    thumbnails: bool = False,
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
) -> ExportedPage:
    """Rasterize one page to a density-tagged JPEG on disk."""
    geometry = _geometry_or_fail(page, page_number)
    with rasterize(page, geometry, spec, page_number=page_number) as raster:
        payload = inject_density(encode_jpeg(raster.image, jpeg_quality), spec.dpi)
        output_path = build_output_path(out_dir, f"{stem}_P{page_number}", ".jpg")
        output_path.write_bytes(payload)
        exported = ExportedPage(
            page_number=page_number,
            output_path=str(output_path),
            thumbnail_path=None,
            original_width_pt=geometry.width_pt,
            original_height_pt=geometry.height_pt,
            render_scale=raster.render_scale,
            output_width_px=raster.output_width_px,
            output_height_px=raster.output_height_px,
            output_width_mm=raster.output_width_mm,
            output_height_mm=raster.output_height_mm,
            dpi=spec.dpi,
        )

    if not thumbnails:
        return exported

    preview = render_preview(page, geometry, page_number=page_number)
    try:
        thumbnail_path = build_output_path(out_dir, f"{stem}_P{page_number}", ".thumb.jpg")
        thumbnail_path.write_bytes(encode_jpeg(preview, THUMBNAIL_JPEG_QUALITY))
    finally:
        preview.close()
    return replace(exported, thumbnail_path=str(thumbnail_path))


def iter_page_analyses(
    document: Any,
    progress_sink: ProgressSink | None = None,
    should_cancel: CancelCheck | None = None,
) -> Iterator[PageOutcome]:
    """Yield one analysis outcome per page in document order."""
    yield from _iter_pages(
        document,
        lambda page, page_number: PageOutcome(
            page_number=page_number,
            analysis=analyze_page(page, page_number),
        ),
        progress_sink=progress_sink,
        should_cancel=should_cancel,
    )


def iter_page_exports(
    document: Any,
    spec: RasterSpec,
    out_dir: Path,
    stem: str,
    thumbnails: bool = False,
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    progress_sink: ProgressSink | None = None,
    should_cancel: CancelCheck | None = None,
) -> Iterator[PageOutcome]:
    """Yield one export outcome per page in document order."""
    out_dir.mkdir(parents=True, exist_ok=True)
    yield from _iter_pages(
        document,
        lambda page, page_number: PageOutcome(
            page_number=page_number,
            exported=export_page(
                page,
                page_number,
                spec=spec,
                out_dir=out_dir,
                stem=stem,
                thumbnails=thumbnails,
                jpeg_quality=jpeg_quality,
            ),
        ),
        progress_sink=progress_sink,
        should_cancel=should_cancel,
    )


def analyze_pdf(
    source: Path | str | bytes,
    progress_sink: ProgressSink | None = None,
    should_cancel: CancelCheck | None = None,
) -> AnalysisResult:
    """Run the analysis pass over a whole document."""
    document = open_document(source)
    try:
        page_count = len(document)
        outcomes = list(
            iter_page_analyses(
                document,
                progress_sink=progress_sink,
                should_cancel=should_cancel,
            )
        )
    finally:
        document.close()

    analyses = [outcome.analysis for outcome in outcomes if outcome.analysis is not None]
    return AnalysisResult(
        page_count=page_count,
        analyses=analyses,
        stats=aggregate(analyses),
        skipped_pages=[outcome.page_number for outcome in outcomes if outcome.skipped],
        cancelled=len(outcomes) < page_count,
    )


def export_pdf_pages(
    source: Path,
    out_dir: Path,
    spec: RasterSpec,
    thumbnails: bool = False,
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    progress_sink: ProgressSink | None = None,
    should_cancel: CancelCheck | None = None,
) -> ExportResult:
    """Run the export pass over a whole document."""
    document = open_document(source)
    try:
        page_count = len(document)
        outcomes = list(
            iter_page_exports(
                document,
                spec=spec,
                out_dir=out_dir,
                stem=source.stem,
                thumbnails=thumbnails,
                jpeg_quality=jpeg_quality,
                progress_sink=progress_sink,
                should_cancel=should_cancel,
            )
        )
    finally:
        document.close()

    return ExportResult(
        page_count=page_count,
        pages=[outcome.exported for outcome in outcomes if outcome.exported is not None],
        skipped_pages=[outcome.page_number for outcome in outcomes if outcome.skipped],
        cancelled=len(outcomes) < page_count,
    )


def encode_jpeg(image: Any, quality: int) -> bytes:
    """Encode an RGB image as baseline JPEG with a JFIF header."""
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def build_output_path(out_dir: Path, stem: str, suffix: str) -> Path:
    """Return a collision-safe output path inside ``out_dir``."""
    candidate = out_dir / f"{stem}{suffix}"
    counter = 1
    while candidate.exists():
        candidate = out_dir / f"{stem}.{counter}{suffix}"
        counter += 1
    return candidate


def _iter_pages(
    document: Any,
    step: Callable[[Any, int], PageOutcome],
    progress_sink: ProgressSink | None,
    should_cancel: CancelCheck | None,
) -> Iterator[PageOutcome]:
    total = len(document)
    for page_index in range(total):
        page_number = page_index + 1
        if should_cancel is not None and should_cancel():
            logger.info("Cancelled before page %d of %d.", page_number, total)
            return

        page = None
        try:
            page = _load_page(document, page_index, page_number)
            outcome = step(page, page_number)
        except RenderFailure as exc:
            logger.warning("Skipping page %d: %s", page_number, exc)
            outcome = PageOutcome(page_number=page_number, error=str(exc))
        finally:
            if page is not None:
                page.close()

        if progress_sink is not None:
            progress_sink(ProgressEvent(completed=page_number, total=total))
        yield outcome


def _load_page(document: Any, page_index: int, page_number: int) -> Any:
    try:
        return document[page_index]
    except Exception as exc:
        raise RenderFailure(page_number, f"cannot load page: {exc}") from exc


def _geometry_or_fail(page: Any, page_number: int) -> PageGeometry:
    try:
        return page_geometry(page)
    except ValueError as exc:
        raise RenderFailure(page_number, str(exc)) from exc
