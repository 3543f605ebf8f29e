from __future__ import annotations

"""Source adapter exceptions."""

__all__ = [
    "SourceError",
    "EmptySourceError",
    "SourceDecodeError",
    "UnsupportedSourceError",
]


class SourceError(Exception):
    """Base class for errors turning a file into a cell grid."""


class EmptySourceError(SourceError):
    """Raised when a file or sheet holds no rows at all."""


class SourceDecodeError(SourceError):
    """Raised when the file cannot be decoded (bad encoding, corrupt workbook)."""


class UnsupportedSourceError(SourceError):
    """Raised for file types no adapter handles."""
