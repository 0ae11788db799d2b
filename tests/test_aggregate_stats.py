"""Tests for document-level print-readiness statistics."""

from __future__ import annotations

from printprep.aggregate import aggregate, estimate_spine, format_page_list, issue_pages
from printprep.models import PageAnalysis


def _page(
    page_number: int,
    is_color: bool,
    width_mm: float = 216.0,
    height_mm: float = 303.0,
    is_low_res: bool = False,
) -> PageAnalysis:
    return PageAnalysis(
        page_number=page_number,
        is_color=is_color,
        is_low_res=is_low_res,
        width_mm=width_mm,
        height_mm=height_mm,
    )


def test_empty_analysis_yields_zeroed_stats() -> None:
    stats = aggregate([])

    assert stats.total == 0
    assert stats.color_count == 0
    assert stats.mono_count == 0
    assert stats.color_pages == []
    assert stats.mono_pages == []
    assert stats.spine == 0.0
    assert stats.is_bleed is False
    assert stats.has_low_res is False


def test_page_lists_keep_document_order() -> None:
    stats = aggregate(
        [_page(1, True), _page(2, False), _page(3, True), _page(4, False), _page(5, False)]
    )

    assert stats.color_pages == [1, 3]
    assert stats.mono_pages == [2, 4, 5]
    assert (stats.color_count, stats.mono_count, stats.total) == (2, 3, 5)


def test_bleed_band_is_exclusive_and_uses_first_page_only() -> None:
    assert aggregate([_page(1, False, width_mm=216.0)]).is_bleed is True
    assert aggregate([_page(1, False, width_mm=210.0)]).is_bleed is False
    assert aggregate([_page(1, False, width_mm=220.0)]).is_bleed is False
    assert aggregate([_page(1, False, width_mm=209.9), _page(2, False, width_mm=216.0)]).is_bleed is False


def test_main_size_comes_from_first_page() -> None:
    stats = aggregate([_page(1, False, width_mm=216.0, height_mm=303.0), _page(2, False, width_mm=100.0)])
    assert stats.main_size == "216 x 303 mm"


def test_low_res_on_any_page_is_reported() -> None:
    stats = aggregate([_page(1, False), _page(2, True, is_low_res=True)])
    assert stats.has_low_res is True


def test_spine_estimate_uses_fixed_sheet_thickness() -> None:
    assert estimate_spine(100) == 5.0
    assert estimate_spine(3) == 0.15
    assert aggregate([_page(number, False) for number in range(1, 9)]).spine == 0.4


def test_handoff_carries_counts_and_spine() -> None:
    handoff = aggregate([_page(1, True), _page(2, False)]).to_handoff()
    assert (handoff.total_pages, handoff.color_count, handoff.bw_count, handoff.spine) == (2, 1, 1, 0.1)


def test_issue_pages_selects_low_res_and_no_bleed_pages() -> None:
    pages = [
        _page(1, False, width_mm=216.0),
        _page(2, False, width_mm=210.0),
        _page(3, True, width_mm=216.0, is_low_res=True),
    ]
    assert [page.page_number for page in issue_pages(pages)] == [2, 3]


def test_format_page_list() -> None:
    assert format_page_list([1, 4, 9]) == "1, 4, 9"
    assert format_page_list([]) == ""
