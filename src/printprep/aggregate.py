"""Document-level print-readiness statistics."""

from __future__ import annotations

from collections.abc import Sequence

from printprep.models import DocumentStats, PageAnalysis
from printprep.units import format_mm, round_half_up

# Placeholder thickness per sheet (two pages); material-specific thickness is
# applied downstream.
SPINE_MM_PER_SHEET = 0.1
PAGES_PER_SHEET = 2
BLEED_MIN_WIDTH_MM = 210.0
BLEED_MAX_WIDTH_MM = 220.0


def aggregate(analyses: Sequence[PageAnalysis]) -> DocumentStats:
    """Combine per-page analyses into document statistics.

    Bleed is judged from page 1 only, and only by width.
    """
    color_pages = [analysis.page_number for analysis in analyses if analysis.is_color]
    mono_pages = [analysis.page_number for analysis in analyses if not analysis.is_color]
    total = len(analyses)

    if analyses:
        first = analyses[0]
        main_size = f"{format_mm(first.width_mm)} x {format_mm(first.height_mm)} mm"
        is_bleed = BLEED_MIN_WIDTH_MM < first.width_mm < BLEED_MAX_WIDTH_MM
    else:
        main_size = ""
        is_bleed = False

    return DocumentStats(
        total=total,
        color_count=len(color_pages),
        mono_count=len(mono_pages),
        color_pages=color_pages,
        mono_pages=mono_pages,
        spine=estimate_spine(total),
        main_size=main_size,
        is_bleed=is_bleed,
        has_low_res=any(analysis.is_low_res for analysis in analyses),
    )


def estimate_spine(page_count: int) -> float:
    return round_half_up(page_count / PAGES_PER_SHEET * SPINE_MM_PER_SHEET, 2)


def issue_pages(analyses: Sequence[PageAnalysis]) -> list[PageAnalysis]:
    """Return the pages worth a second look before printing."""
    return [analysis for analysis in analyses if analysis.has_issue]


def format_page_list(page_numbers: Sequence[int]) -> str:
    """Render page numbers the way they are pasted into a print order."""
    return ", ".join(str(number) for number in page_numbers)
