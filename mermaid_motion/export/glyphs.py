"""Decorative look: lay out text with a font file and emit SVG glyph outlines.

Only used when an export asks for ``look="decorative"``. The font is loaded
once per ``FontCache``; a failed load is remembered so frames fall back to
plain SVG text without retrying.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from fontTools.pens.svgPathPen import SVGPathPen
from fontTools.ttLib import TTFont, TTLibError

from mermaid_motion.scene.path_geometry import (
    PathSegment,
    PathSyntaxError,
    format_path,
    parse_path,
    transform_path,
)

logger = logging.getLogger(__name__)

DECORATIVE_FONT_SIZE = 16.0
# Baseline sits this fraction of the font size below the region's center.
BASELINE_SHIFT = 0.35


@dataclass
class PlacedGlyph:
    name: str
    outline: List[PathSegment]
    x_offset: float  # font units from the start of the run


@dataclass
class GlyphRun:
    units_per_em: int
    glyphs: List[PlacedGlyph] = field(default_factory=list)
    advance: float = 0.0  # font units


class FontCache:
    """Populate-once holder for the decorative font.

    States: empty (never tried), loaded, failed. Both loaded and failed are
    sticky until ``invalidate()``.
    """

    def __init__(self, path: Optional[str] = None, loader: Callable[[str], TTFont] = TTFont):
        self.path = path
        self._loader = loader
        self._font: Optional[TTFont] = None
        self._failed = False

    @property
    def failed(self) -> bool:
        return self._failed

    def get(self) -> Optional[TTFont]:
        if self._font is not None:
            return self._font
        if self._failed:
            return None
        if not self.path:
            logger.warning("No decorative font configured; decorative look falls back to plain text")
            self._failed = True
            return None
        try:
            font = self._loader(self.path)
            if font["head"].unitsPerEm <= 0 or not font.getBestCmap():
                raise TTLibError("font has no usable cmap or unitsPerEm")
        except (OSError, TTLibError, KeyError) as exc:
            logger.warning(f"Decorative font {self.path!r} failed to load ({exc}); using plain text")
            self._failed = True
            return None
        if self._font is None:
            self._font = font
        return self._font

    def invalidate(self) -> None:
        self._font = None
        self._failed = False


def layout_text(font: TTFont, text: str) -> GlyphRun:
    """Glyph outlines and advances for ``text`` in font units (no scaling)."""
    units_per_em = font["head"].unitsPerEm
    cmap = font.getBestCmap() or {}
    glyph_set = font.getGlyphSet()
    run = GlyphRun(units_per_em=units_per_em)
    for char in text:
        name = cmap.get(ord(char), ".notdef")
        if name not in glyph_set:
            continue
        glyph = glyph_set[name]
        pen = SVGPathPen(glyph_set)
        glyph.draw(pen)
        try:
            outline = parse_path(pen.getCommands())
        except PathSyntaxError:
            logger.debug(f"Skipping unparsable outline for glyph {name}")
            outline = []
        run.glyphs.append(PlacedGlyph(name=name, outline=outline, x_offset=run.advance))
        run.advance += glyph.width
    return run


def glyph_run_to_path(run: GlyphRun, center_x: float, center_y: float, font_size: float) -> str:
    """Path data placing ``run`` centered on ``center_x`` with its baseline below ``center_y``.

    Font space is y-up and scene space is y-down, hence the negative y scale.
    """
    scale = font_size / run.units_per_em
    start_x = center_x - run.advance * scale / 2.0
    baseline_y = center_y + BASELINE_SHIFT * font_size
    parts = []
    for glyph in run.glyphs:
        if not glyph.outline:
            continue
        placed = transform_path(glyph.outline, scale, -scale, start_x + glyph.x_offset * scale, baseline_y)
        parts.append(format_path(placed))
    return "".join(parts)


def text_to_path_data(
    font: TTFont,
    text: str,
    center_x: float,
    center_y: float,
    font_size: float = DECORATIVE_FONT_SIZE,
) -> str:
    return glyph_run_to_path(layout_text(font, text), center_x, center_y, font_size)
