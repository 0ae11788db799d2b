"""Physical unit conversions shared by every printprep component.

All display millimetres are rounded to one decimal with round-half-up so the
rasterizer and the aggregator report identical sizes for the same page.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

POINTS_PER_INCH = 72.0
MM_PER_INCH = 25.4
MM_DECIMALS = 1


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round like a cash register: halves always go away from zero."""
    exponent = Decimal(1).scaleb(-ndigits)
    return float(Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def points_to_mm(points: float) -> float:
    return round_half_up(points / POINTS_PER_INCH * MM_PER_INCH, MM_DECIMALS)


def mm_to_pixels(mm: float, dpi: float) -> float:
    """Return the unrounded pixel extent of ``mm`` at ``dpi``."""
    return mm / MM_PER_INCH * dpi


def pixels_to_mm(pixels: int, dpi: float) -> float:
    return round_half_up(pixels / dpi * MM_PER_INCH, MM_DECIMALS)


def format_mm(mm: float) -> str:
    """Format a millimetre value without a trailing ``.0``."""
    text = f"{mm:.{MM_DECIMALS}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
