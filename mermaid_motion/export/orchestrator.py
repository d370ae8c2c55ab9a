"""Export orchestration: scene + options -> APNG bytes.

Frames are produced strictly one after another. The compositor surface is
shared by all frames, so frame ``f + 1`` is not synthesized until the pixels
of frame ``f`` have been read back.
"""
from __future__ import annotations

import asyncio
import logging
import time
from functools import lru_cache
from typing import Callable, List, Optional
from xml.etree import ElementTree as ET

from mermaid_motion.export.compositor import Compositor, open_compositor
from mermaid_motion.export.encoder import encode_apng
from mermaid_motion.export.errors import DimensionMismatchError, MissingSourceError, RasterizationError
from mermaid_motion.export.geometry import resolve_dimensions, validate_dimensions
from mermaid_motion.export.glyphs import FontCache
from mermaid_motion.export.models import ExportOptions, ExportResult, Frame
from mermaid_motion.export.synthesizer import SynthesisContext, prepare_context, synthesize_frame
from mermaid_motion.scene.svg import SceneInput, load_scene
from mermaid_motion.utils.config import settings

logger = logging.getLogger(__name__)

FILENAME_PREFIX = "mermaid-animation"

CompositorFactory = Callable[[int, int], Compositor]


def export_filename(timestamp: float) -> str:
    return f"{FILENAME_PREFIX}-{int(timestamp * 1000)}.png"


def _check_scene_size(scene: ET.Element, context: SynthesisContext) -> None:
    try:
        actual_width = int(scene.get("width") or 0)
        actual_height = int(scene.get("height") or 0)
    except ValueError:
        actual_width = actual_height = 0
    check = validate_dimensions(actual_width, actual_height, context.frame)
    if not check.valid:
        expected = resolve_dimensions(context.frame, 1)
        raise DimensionMismatchError(
            check.error or "Dimension mismatch",
            actual=(actual_width, actual_height),
            expected=(expected.width, expected.height),
        )


def _load_source(scene: Optional[SceneInput]) -> ET.Element:
    if scene is None:
        raise MissingSourceError()
    if isinstance(scene, (str, bytes)) and not scene.strip():
        raise MissingSourceError()
    try:
        return load_scene(scene)
    except ET.ParseError as exc:
        raise RasterizationError(f"Scene is not valid SVG: {exc}") from exc


class AnimationExporter:
    """Owns the decorative font cache and the compositor factory.

    Reuse one exporter across calls to keep the decorative font loaded (or its
    failure remembered) for the life of the process.
    """

    def __init__(
        self,
        font_cache: Optional[FontCache] = None,
        compositor_factory: CompositorFactory = open_compositor,
        clock: Callable[[], float] = time.time,
    ):
        self.font_cache = font_cache if font_cache is not None else FontCache(settings.decorative_font_path or None)
        self.compositor_factory = compositor_factory
        self.clock = clock

    async def render_frames(self, source: ET.Element, context: SynthesisContext) -> List[Frame]:
        options = context.options
        dims = resolve_dimensions(context.frame, options.scale)
        total = options.total_frames
        compositor = self.compositor_factory(dims.width, dims.height)
        frames: List[Frame] = []
        try:
            for index in range(total):
                scene = synthesize_frame(source, context, index)
                _check_scene_size(scene, context)
                try:
                    pixels = await asyncio.to_thread(compositor.rasterize, scene, options.scale)
                except RasterizationError as exc:
                    exc.frame_index = index
                    raise
                frames.append(Frame(pixels=pixels, delay_ms=options.frame_delay_ms))
                logger.debug(f"Frame {index + 1}/{total} rasterized")
        finally:
            compositor.close()
        return frames

    async def export(self, scene: Optional[SceneInput], options: Optional[ExportOptions] = None) -> ExportResult:
        options = options or ExportOptions()
        source = _load_source(scene)
        context = prepare_context(source, options, self.font_cache)
        dims = resolve_dimensions(context.frame, options.scale)
        logger.info(
            f"Exporting {options.total_frames} frames at {dims.width}x{dims.height} "
            f"(fps={options.fps}, duration={options.duration}s, scale={options.scale}, "
            f"animation={options.animation_type}, theme={options.theme_id}, look={options.look})"
        )

        frames = await self.render_frames(source, context)
        data = encode_apng(
            [f.pixels for f in frames],
            dims.width,
            dims.height,
            [f.delay_ms for f in frames],
            quality=options.quality,
        )
        return ExportResult(
            data=data,
            filename=export_filename(self.clock()),
            width=dims.width,
            height=dims.height,
            frame_count=len(frames),
        )


@lru_cache(maxsize=1)
def get_default_exporter() -> AnimationExporter:
    """Return the shared exporter used when callers do not pass one.

    Keeps the decorative font (or its failed load) for the life of the process;
    `get_default_exporter.cache_clear()` starts over.
    """
    return AnimationExporter()


async def export_animation(
    scene: Optional[SceneInput],
    options: Optional[ExportOptions] = None,
    *,
    exporter: Optional[AnimationExporter] = None,
) -> ExportResult:
    """Export ``scene`` as an APNG. Raises on missing source or any failed frame."""
    exporter = exporter or get_default_exporter()
    return await exporter.export(scene, options)


def export_animation_sync(
    scene: Optional[SceneInput],
    options: Optional[ExportOptions] = None,
    *,
    exporter: Optional[AnimationExporter] = None,
) -> ExportResult:
    """Blocking wrapper around ``export_animation`` for non-async callers."""
    return asyncio.run(export_animation(scene, options, exporter=exporter))
