"""Tests for render-scale resolution and rasterized output dimensions."""

from __future__ import annotations

import math

import pytest

from printprep.errors import RenderFailure
from printprep.models import PageGeometry, RasterSpec
from printprep.pipeline import open_document
from printprep.rasterize import (
    output_dimensions,
    page_geometry,
    rasterize,
    render_preview,
    resolve_render_scale,
)
from tests.pdf_factory import blank_page, create_pdf_with_pages, red_page

A4 = PageGeometry(width_pt=595, height_pt=842)


def test_native_mode_scales_by_dpi_over_72() -> None:
    scale = resolve_render_scale(A4, RasterSpec(dpi=300))
    assert scale == pytest.approx(300 / 72)
    assert output_dimensions(A4, scale) == (2479, 3508)


def test_target_width_mode_hits_requested_pixel_width_without_rounding_up() -> None:
    spec = RasterSpec(dpi=300, target_width_mm=148)
    scale = resolve_render_scale(A4, spec)
    width_px, _ = output_dimensions(A4, scale)
    requested_px = 148 / 25.4 * 300

    assert width_px == math.floor(A4.width_pt * scale)
    assert width_px <= requested_px
    assert requested_px - width_px < 1


@pytest.mark.parametrize("dpi", [72, 150, 300, 600])
def test_output_width_is_floor_of_scaled_width(dpi: int) -> None:
    geometry = PageGeometry(width_pt=612.3, height_pt=791.7)
    scale = resolve_render_scale(geometry, RasterSpec(dpi=dpi))
    assert output_dimensions(geometry, scale) == (
        math.floor(612.3 * scale),
        math.floor(791.7 * scale),
    )


def test_rasterize_produces_exact_dimensions_on_white() -> None:
    document = open_document(create_pdf_with_pages([blank_page()]))
    try:
        page = document[0]
        geometry = page_geometry(page)
        with rasterize(page, geometry, RasterSpec(dpi=150)) as raster:
            assert raster.image.size == (raster.output_width_px, raster.output_height_px)
            assert raster.output_width_px == math.floor(595 * 150 / 72)
            assert raster.image.mode == "RGB"
            assert raster.image.getextrema() == ((255, 255), (255, 255), (255, 255))
            assert raster.output_width_mm == 209.9
        assert raster.is_closed
        assert raster.output_width_px == 0
        page.close()
    finally:
        document.close()


def test_rasterize_to_target_width_reports_physical_size() -> None:
    document = open_document(create_pdf_with_pages([red_page()]))
    try:
        page = document[0]
        with rasterize(page, page_geometry(page), RasterSpec(dpi=100, target_width_mm=100)) as raster:
            assert raster.output_width_px == 393
            assert raster.output_width_mm == 99.8
            red, green, blue = raster.image.getpixel((raster.output_width_px // 2, raster.output_height_px // 2))
            assert red > 200 and green < 50 and blue < 50
        page.close()
    finally:
        document.close()


def test_preview_uses_fixed_pixel_width() -> None:
    document = open_document(create_pdf_with_pages([blank_page()]))
    try:
        page = document[0]
        preview = render_preview(page, page_geometry(page), width_px=400)
        assert preview.size[0] == 400
        assert preview.size[1] == math.floor(842 * 400 / 595)
        preview.close()
        page.close()
    finally:
        document.close()


class _BrokenPage:
    def render(self, **kwargs: object) -> object:
        raise RuntimeError("corrupt content stream")


def test_render_errors_become_render_failures() -> None:
    with pytest.raises(RenderFailure, match="page 7: corrupt content stream"):
        rasterize(_BrokenPage(), A4, RasterSpec(dpi=72), page_number=7)
