"""Export pipeline.

Components:
- geometry: coordinate frame parsing and export dimensions
- glyphs: decorative-look text outlines and the font cache
- synthesizer: per-frame styled, animation-baked SVG snapshots
- compositor: SVG snapshot -> RGBA buffer
- encoder: RGBA buffers -> APNG
- orchestrator: runs the pipeline for one export call (import it directly;
  it pulls in the cairo-backed compositor)
"""

from mermaid_motion.export.errors import (
    DimensionMismatchError,
    ExportError,
    FrameSequenceError,
    MissingSourceError,
    RasterizationError,
)
from mermaid_motion.export.geometry import (
    CoordinateFrame,
    Dimensions,
    parse_coordinate_frame,
    resolve_dimensions,
    validate_dimensions,
)
from mermaid_motion.export.models import ExportOptions, ExportResult, Frame

__all__ = [
    # Errors
    "DimensionMismatchError",
    "ExportError",
    "FrameSequenceError",
    "MissingSourceError",
    "RasterizationError",
    # Geometry
    "CoordinateFrame",
    "Dimensions",
    "parse_coordinate_frame",
    "resolve_dimensions",
    "validate_dimensions",
    # Models
    "ExportOptions",
    "ExportResult",
    "Frame",
]
