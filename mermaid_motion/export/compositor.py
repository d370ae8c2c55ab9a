"""Turn synthesized SVG scenes into fixed-size RGBA buffers.

One compositor owns one surface for the whole export: each frame clears it,
draws the rasterized scene at its natural size, and reads the pixels back.
Supersampling happens inside the rasterizer as a coordinate transform; the
drawn image is never stretched to fit the surface.
"""
from __future__ import annotations

import io
import logging
from typing import Protocol
from xml.etree import ElementTree as ET

from PIL import Image

from mermaid_motion.export.errors import RasterizationError
from mermaid_motion.scene.svg import serialize_scene

logger = logging.getLogger(__name__)

TRANSPARENT = (0, 0, 0, 0)


class Compositor(Protocol):
    width: int
    height: int

    def rasterize(self, scene: ET.Element, scale: int) -> bytes:
        ...

    def close(self) -> None:
        ...


class CairoCompositor:
    """cairosvg-backed compositor with a reusable Pillow surface."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise RasterizationError(f"Cannot open a {width}x{height} raster surface")
        self.width = width
        self.height = height
        self._surface = Image.new("RGBA", (width, height), TRANSPARENT)
        self._size_warned = False

    def _clear(self) -> None:
        self._surface.paste(TRANSPARENT, (0, 0, self.width, self.height))

    def _render(self, scene: ET.Element, scale: int) -> Image.Image:
        # Imported here so the native cairo library is only loaded when rendering.
        import cairosvg

        svg_bytes = serialize_scene(scene)
        # Embedded bytes only: no file or URL reference for the renderer to resolve.
        png_bytes = cairosvg.svg2png(bytestring=svg_bytes, scale=scale, unsafe=False)
        image = Image.open(io.BytesIO(png_bytes))
        image.load()
        return image.convert("RGBA")

    def rasterize(self, scene: ET.Element, scale: int) -> bytes:
        try:
            image = self._render(scene, scale)
        except Exception as exc:
            raise RasterizationError(f"Failed to rasterize SVG frame: {exc}") from exc
        # round(w) * scale from the snapshot can differ from round(w * scale) by a pixel;
        # the gap stays transparent or the overhang is cropped.
        if image.size != (self.width, self.height) and not self._size_warned:
            logger.warning(
                f"Rendered frame is {image.size[0]}x{image.size[1]} on a {self.width}x{self.height} surface; "
                "drawing it unscaled"
            )
            self._size_warned = True
        self._surface.paste(image, (0, 0))
        pixels = self._surface.tobytes()
        self._clear()
        return pixels

    def close(self) -> None:
        self._surface.close()


def open_compositor(width: int, height: int) -> CairoCompositor:
    """Create the raster surface handle for one export."""
    return CairoCompositor(width, height)
