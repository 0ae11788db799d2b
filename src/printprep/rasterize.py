"""Page rasterization with PDFium at a controlled physical scale."""

from __future__ import annotations

import math
from typing import Any

from PIL import Image
import pypdfium2 as pdfium

from printprep.errors import RenderFailure
from printprep.models import PageGeometry, RasterResult, RasterSpec
from printprep.units import POINTS_PER_INCH, mm_to_pixels

WHITE_RGB = (255, 255, 255)
WHITE_FILL = (255, 255, 255, 255)
PREVIEW_WIDTH_PX = 400


def get_render_backend_version() -> str | None:
    """Return the installed pypdfium2 version string if available."""
    version_module = getattr(pdfium, "version", None)
    info = getattr(version_module, "PYPDFIUM_INFO", None) if version_module is not None else None
    if info is None:
        info = getattr(pdfium, "__version__", None)
    return str(info) if info is not None else None


def page_geometry(page: Any) -> PageGeometry:
    """Return the 1:1 page size as PDFium reports it."""
    width, height = page.get_size()
    return PageGeometry(width_pt=float(width), height_pt=float(height))


def resolve_render_scale(geometry: PageGeometry, spec: RasterSpec) -> float:
    """Return the scale factor from PDF points to output pixels."""
    if spec.target_width_mm is not None and spec.target_width_mm > 0:
        return mm_to_pixels(spec.target_width_mm, spec.dpi) / geometry.width_pt
    return spec.dpi / POINTS_PER_INCH


def output_dimensions(geometry: PageGeometry, scale: float) -> tuple[int, int]:
    """Return floored pixel dimensions; the output never rounds up past the footprint."""
    return (
        math.floor(geometry.width_pt * scale),
        math.floor(geometry.height_pt * scale),
    )


def rasterize(
    page: Any,
    geometry: PageGeometry,
    spec: RasterSpec,
    page_number: int = 1,
) -> RasterResult:
    """Render one page to an opaque RGB bitmap sized by ``spec``."""
    scale = resolve_render_scale(geometry, spec)
    width_px, height_px = output_dimensions(geometry, scale)
    image = _render_on_white(page, scale, width_px, height_px, page_number)
    return RasterResult(
        image=image,
        render_scale=scale,
        output_width_px=width_px,
        output_height_px=height_px,
        dpi=spec.dpi,
    )


def render_preview(
    page: Any,
    geometry: PageGeometry,
    width_px: int = PREVIEW_WIDTH_PX,
    page_number: int = 1,
) -> Image.Image:
    """Render a thumbnail whose width is a fixed pixel budget."""
    if width_px <= 0:
        raise ValueError(f"Preview width must be > 0 pixels, got {width_px}.")
    scale = width_px / geometry.width_pt
    preview_width, preview_height = output_dimensions(geometry, scale)
    return _render_on_white(page, scale, preview_width, preview_height, page_number)


def render_at_scale(
    page: Any,
    geometry: PageGeometry,
    scale: float,
    page_number: int = 1,
) -> Image.Image:
    """Render at an explicit scale, used for low-cost analysis bitmaps."""
    width_px, height_px = output_dimensions(geometry, scale)
    return _render_on_white(page, scale, width_px, height_px, page_number)


def _render_on_white(
    page: Any,
    scale: float,
    width_px: int,
    height_px: int,
    page_number: int,
) -> Image.Image:
    if width_px < 1 or height_px < 1:
        raise RenderFailure(
            page_number,
            f"scaled page is smaller than one pixel ({width_px}x{height_px})",
        )

    canvas = Image.new("RGB", (width_px, height_px), WHITE_RGB)
    bitmap = None
    try:
        bitmap = page.render(scale=scale, fill_color=WHITE_FILL)
        rendered = bitmap.to_pil()
        try:
            if rendered.mode == "RGB":
                canvas.paste(rendered, (0, 0))
            else:
                with rendered.convert("RGB") as converted:
                    canvas.paste(converted, (0, 0))
        finally:
            rendered.close()
    except Exception as exc:
        canvas.close()
        raise RenderFailure(page_number, str(exc)) from exc
    finally:
        if bitmap is not None:
            bitmap.close()
    return canvas
