"""Export error taxonomy.

Recoverable conditions (missing viewBox, missing decorative font) never reach
callers; everything defined here propagates out of ``export_animation``.
"""
from __future__ import annotations


class ExportError(RuntimeError):
    """Base class for errors that abort an export."""


class MissingSourceError(ExportError, ValueError):
    """Raised before any frame work when there is no scene to export."""

    def __init__(self, message: str = "Nothing to export"):
        super().__init__(message)


class DimensionMismatchError(ExportError, ValueError):
    """Raised when a scene's declared size disagrees with its coordinate frame."""

    def __init__(self, message: str, actual: tuple[int, int], expected: tuple[int, int]):
        super().__init__(message)
        self.actual = actual
        self.expected = expected


class RasterizationError(ExportError):
    """Raised when one frame cannot be turned into pixels."""

    def __init__(self, message: str, frame_index: int | None = None):
        super().__init__(message)
        self.frame_index = frame_index


class FrameSequenceError(ExportError):
    """Frames, buffer sizes and delays disagree. Always a programming error."""
