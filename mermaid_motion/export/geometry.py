"""Coordinate frame parsing and export dimension rules.

The output canvas is always ``round(frame.width * scale)`` by
``round(frame.height * scale)``. No other factor may enter these numbers:
an extra multiplier here shows up downstream as a stretched image, not as an
error.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional
from xml.etree import ElementTree as ET

from mermaid_motion.export.models import js_round
from mermaid_motion.scene.svg import bounding_box

logger = logging.getLogger(__name__)

FALLBACK_PADDING = 20.0

_SEPARATOR_RE = re.compile(r"[\s,]+")
_STRICT_NUMBER_RE = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?$")


@dataclass(frozen=True)
class CoordinateFrame:
    x: float
    y: float
    width: float
    height: float

    def to_view_box(self) -> str:
        return " ".join(_fmt(v) for v in (self.x, self.y, self.width, self.height))


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int


@dataclass(frozen=True)
class DimensionCheck:
    valid: bool
    error: Optional[str] = None


def _fmt(value: float) -> str:
    return repr(value) if value != int(value) else str(int(value))


def parse_coordinate_frame(raw: Optional[str]) -> Optional[CoordinateFrame]:
    """Parse ``"x y width height"``; anything other than four numbers gives None."""
    if raw is None:
        return None
    tokens = [t for t in _SEPARATOR_RE.split(raw.strip()) if t]
    if len(tokens) != 4:
        return None
    if not all(_STRICT_NUMBER_RE.match(t) for t in tokens):
        return None
    x, y, width, height = (float(t) for t in tokens)
    return CoordinateFrame(x=x, y=y, width=width, height=height)


def resolve_dimensions(frame: CoordinateFrame, scale: int = 1) -> Dimensions:
    return Dimensions(width=js_round(frame.width * scale), height=js_round(frame.height * scale))


def validate_dimensions(actual_width: int, actual_height: int, frame: CoordinateFrame) -> DimensionCheck:
    """Check a surface's declared size against the unscaled coordinate frame."""
    expected_width = js_round(frame.width)
    expected_height = js_round(frame.height)
    if actual_width == expected_width and actual_height == expected_height:
        return DimensionCheck(valid=True)
    return DimensionCheck(
        valid=False,
        error=(
            f"Dimension mismatch: scene declares {actual_width}x{actual_height} "
            f"but its coordinate frame is {expected_width}x{expected_height}; "
            "exporting would distort the image (stretched or squashed output)."
        ),
    )


def fallback_frame(root: ET.Element, padding: float = FALLBACK_PADDING) -> CoordinateFrame:
    box = bounding_box(root)
    if box is None:
        x, y = 0.0, 0.0
        width = parse_float_attr(root, "width")
        height = parse_float_attr(root, "height")
    else:
        x, y, width, height = box
    return CoordinateFrame(
        x=x - padding,
        y=y - padding,
        width=width + 2 * padding,
        height=height + 2 * padding,
    )


def parse_float_attr(root: ET.Element, name: str) -> float:
    value = root.get(name) or ""
    match = re.match(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+))\s*(px)?\s*$", value)
    return float(match.group(1)) if match else 0.0


def normalize_frame(root: ET.Element) -> CoordinateFrame:
    """The scene's declared viewBox, or a padded bounding box when it has none."""
    raw = root.get("viewBox")
    frame = parse_coordinate_frame(raw)
    if frame is not None and frame.width > 0 and frame.height > 0:
        return frame
    fallback = fallback_frame(root)
    logger.warning(f"Unusable viewBox {raw!r}; using padded bounding box {fallback.to_view_box()}")
    return fallback
