"""JFIF density tagging for exported JPEG files.

Browsers, RIPs and OS previewers fall back to 72 or 96 DPI when a JPEG does
not declare its density. The functions here patch the JFIF APP0 header in
place so the file states the DPI it was rendered at. No pixel data is
re-encoded and the byte length never changes.

APP0 layout from the start of the file::

    0-1   FF D8       start of image
    2-3   FF E0       APP0 marker
    4-5   length
    6-10  "JFIF\\0"
    11-12 version
    13    density units (0 = aspect ratio, 1 = dots/inch, 2 = dots/cm)
    14-15 X density, big-endian
    16-17 Y density, big-endian
"""

from __future__ import annotations

import struct

SOI_APP0_SIGNATURE = b"\xff\xd8\xff\xe0"
UNITS_OFFSET = 13
X_DENSITY_OFFSET = 14
Y_DENSITY_OFFSET = 16
JFIF_HEADER_END = 18
UNITS_DOTS_PER_INCH = 1
MAX_DENSITY = 0xFFFF


def has_app0_header(data: bytes | bytearray) -> bool:
    """Return whether ``data`` starts with SOI immediately followed by APP0."""
    return len(data) >= JFIF_HEADER_END and bytes(data[:4]) == SOI_APP0_SIGNATURE


def inject_density(data: bytes | bytearray, dpi: int) -> bytes:
    """Return ``data`` with its JFIF density set to ``dpi`` dots per inch.

    Streams that do not start with SOI+APP0 are returned unchanged.
    """
    if not 1 <= dpi <= MAX_DENSITY:
        raise ValueError(f"dpi must be within 1..{MAX_DENSITY}, got {dpi}.")
    if not has_app0_header(data):
        return bytes(data)

    patched = bytearray(data)
    patched[UNITS_OFFSET] = UNITS_DOTS_PER_INCH
    struct.pack_into(">HH", patched, X_DENSITY_OFFSET, dpi, dpi)
    return bytes(patched)


def read_density(data: bytes | bytearray) -> tuple[int, int, int] | None:
    """Return ``(units, x_density, y_density)`` from the APP0 header, if present."""
    if not has_app0_header(data):
        return None
    x_density, y_density = struct.unpack_from(">HH", data, X_DENSITY_OFFSET)
    return data[UNITS_OFFSET], x_density, y_density
