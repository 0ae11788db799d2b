"""Per-page color and resolution classification.

The color check is a statistical sampler, not a colour-plane analysis: it
looks at every fourth RGBA pixel in raster order and calls the page colour
as soon as one sample has a channel spread above the noise threshold. The
stride and threshold are empirical and kept as-is.
"""

from __future__ import annotations

from printprep.models import PageClassification

RGBA_CHANNELS = 4
SAMPLE_EVERY_N_PIXELS = 4
SAMPLE_STRIDE_BYTES = RGBA_CHANNELS * SAMPLE_EVERY_N_PIXELS
CHANNEL_DELTA_THRESHOLD = 18
LOW_RES_FLOOR_PX = 300
ANALYSIS_SCALE = 0.4


def detect_color(rgba: bytes | bytearray | memoryview) -> bool:
    """Return True on the first sampled pixel whose R/G or G/B spread exceeds the threshold."""
    data = memoryview(rgba).cast("B") if isinstance(rgba, memoryview) else rgba
    for offset in range(0, len(data) - 2, SAMPLE_STRIDE_BYTES):
        red = data[offset]
        green = data[offset + 1]
        blue = data[offset + 2]
        if abs(red - green) > CHANNEL_DELTA_THRESHOLD or abs(green - blue) > CHANNEL_DELTA_THRESHOLD:
            return True
    return False


def is_low_resolution(native_width_px: float, native_height_px: float) -> bool:
    """Return whether the page's intrinsic 72-DPI viewport is below the print floor."""
    return native_width_px < LOW_RES_FLOOR_PX or native_height_px < LOW_RES_FLOOR_PX


def classify(
    rgba: bytes | bytearray | memoryview,
    native_width_px: float,
    native_height_px: float,
) -> PageClassification:
    """Classify one rendered page bitmap."""
    return PageClassification(
        is_color=detect_color(rgba),
        is_low_res=is_low_resolution(native_width_px, native_height_px),
    )
