"""Exception types raised by printprep."""

from __future__ import annotations


class PrintPrepError(Exception):
    """Base class for printprep failures."""


class DecodeFailure(PrintPrepError):
    """The document could not be opened at all."""


class RenderFailure(PrintPrepError):
    """A single page could not be rasterized."""

    def __init__(self, page_number: int, message: str) -> None:
        super().__init__(f"page {page_number}: {message}")
        self.page_number = page_number
