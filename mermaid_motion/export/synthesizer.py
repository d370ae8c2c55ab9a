"""Build one self-contained, animation-baked SVG snapshot per frame.

Every frame starts from a deep copy of the source scene; the source is never
touched. The copy is styled from the palette, stripped of live animation
elements and stylesheets, and carries the motion state for its progress value.
"""
from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from xml.etree import ElementTree as ET

from fontTools.ttLib import TTFont

from mermaid_motion.export.geometry import CoordinateFrame, normalize_frame
from mermaid_motion.export.glyphs import DECORATIVE_FONT_SIZE, BASELINE_SHIFT, FontCache, text_to_path_data
from mermaid_motion.export.models import ExportOptions, js_round
from mermaid_motion.scene.path_geometry import PathGeometry, PathSyntaxError
from mermaid_motion.scene.svg import (
    SVG_NS,
    XLINK_NS,
    class_contains,
    descendants_of_class,
    has_class,
    iter_tag,
    make_tag,
    namespace_of,
    parent_map,
    parse_float,
    remove_elements,
    strip_ns,
)
from mermaid_motion.themes import Palette, get_theme

logger = logging.getLogger(__name__)

DASH_ARRAY = "10 5"
DASH_PERIOD = 15.0
PARTICLE_RADIUS = "4"
PARTICLE_CLASS = "flow-particle"
DASH_FLOW_CLASS = "dash-flow"

CLASSIC_FONT_FAMILY = "Arial, sans-serif"
CLASSIC_FONT_SIZE = 14.0

# Marks elements this module created; style baking leaves them alone.
EXPORT_MARK = "data-export"

LIVE_ANIMATION_TAGS = ("animate", "animateMotion", "animateTransform", "animateColor", "set")
_LIVE_STYLE_PROPERTY_RE = re.compile(r"^\s*(animation|transition|--)", re.IGNORECASE)


@dataclass
class PathMotionInfo:
    geometry: PathGeometry
    arc_length: float


@dataclass
class SynthesisContext:
    """Everything a frame needs that does not change from frame to frame."""

    frame: CoordinateFrame
    palette: Palette
    options: ExportOptions
    motion: List[Optional[PathMotionInfo]] = field(default_factory=list)
    font: Optional[TTFont] = None

    @property
    def background(self) -> Optional[str]:
        if self.options.transparent:
            return None
        return self.options.background_color_override or self.palette.background


# ---------------------------------------------------------------------------
# Motion laws
# ---------------------------------------------------------------------------


def frame_progress(frame_index: int, total_frames: int) -> float:
    return frame_index / total_frames


def dash_offset(progress: float, duration: float) -> float:
    """Dash-flow law: period ``1 / (2 * duration)`` in progress units."""
    return DASH_PERIOD - ((progress * DASH_PERIOD * duration * 2) % DASH_PERIOD)


def particle_position(info: PathMotionInfo, progress: float):
    return info.geometry.point_at_length(info.arc_length * progress)


def _href(el: ET.Element) -> Optional[str]:
    return el.get("href") or el.get(f"{{{XLINK_NS}}}href")


def _motion_path_data(particle: ET.Element, ids: Dict[str, ET.Element]) -> Optional[str]:
    for motion in iter_tag(particle, "animateMotion"):
        for mpath in iter_tag(motion, "mpath"):
            ref = (_href(mpath) or "").lstrip("#")
            target = ids.get(ref)
            if target is not None and target.get("d"):
                return target.get("d")
        if motion.get("path"):
            return motion.get("path")
    return None


def particles(root: ET.Element) -> List[ET.Element]:
    return [el for el in root.iter() if has_class(el, PARTICLE_CLASS)]


def extract_motion_info(root: ET.Element) -> List[Optional[PathMotionInfo]]:
    """One entry per particle, in document order; None where no path is bound."""
    ids = {el.get("id"): el for el in root.iter() if el.get("id")}
    infos: List[Optional[PathMotionInfo]] = []
    for particle in particles(root):
        d = _motion_path_data(particle, ids)
        if d is None:
            infos.append(None)
            continue
        try:
            geometry = PathGeometry.from_d(d)
        except PathSyntaxError as exc:
            logger.warning(f"Ignoring particle path with bad data: {exc}")
            infos.append(None)
            continue
        infos.append(PathMotionInfo(geometry=geometry, arc_length=geometry.length))
    return infos


def dash_targets(root: ET.Element) -> List[ET.Element]:
    return [
        el
        for el in root.iter()
        if (strip_ns(el.tag) == "path" and el.get("marker-end")) or class_contains(el, DASH_FLOW_CLASS)
    ]


# ---------------------------------------------------------------------------
# Frame steps
# ---------------------------------------------------------------------------


def _declare_frame(root: ET.Element, frame: CoordinateFrame) -> None:
    root.set("viewBox", frame.to_view_box())
    root.set("width", str(js_round(frame.width)))
    root.set("height", str(js_round(frame.height)))
    if not namespace_of(root) and root.get("xmlns") is None:
        root.set("xmlns", SVG_NS)


def _insert_background(root: ET.Element, frame: CoordinateFrame, color: str) -> ET.Element:
    rect = ET.Element(make_tag(root, "rect"))
    rect.set("x", str(frame.x))
    rect.set("y", str(frame.y))
    rect.set("width", str(frame.width))
    rect.set("height", str(frame.height))
    rect.set("fill", color)
    rect.set(EXPORT_MARK, "background")
    root.insert(0, rect)
    return rect


def _classic_text(root: ET.Element, text: str, cx: float, cy: float, color: str) -> ET.Element:
    el = ET.Element(make_tag(root, "text"))
    el.set("x", str(cx))
    el.set("y", str(cy + BASELINE_SHIFT * CLASSIC_FONT_SIZE))
    el.set("text-anchor", "middle")
    el.set("fill", color)
    el.set("font-family", CLASSIC_FONT_FAMILY)
    el.set("font-size", str(int(CLASSIC_FONT_SIZE)))
    el.set(EXPORT_MARK, "text")
    el.text = text
    return el


def _glyph_text(root: ET.Element, font: TTFont, text: str, cx: float, cy: float, color: str) -> Optional[ET.Element]:
    d = text_to_path_data(font, text, cx, cy, DECORATIVE_FONT_SIZE)
    if not d:
        return None
    el = ET.Element(make_tag(root, "path"))
    el.set("d", d)
    el.set("fill", color)
    el.set("stroke", "none")
    el.set(EXPORT_MARK, "glyphs")
    return el


def _replace_rich_text(root: ET.Element, palette: Palette, font: Optional[TTFont]) -> int:
    """Swap every foreignObject for SVG text or glyph outlines; returns the count."""
    parents = parent_map(root)
    regions = list(iter_tag(root, "foreignObject"))
    for fo in regions:
        parent = parents.get(fo)
        if parent is None:
            continue
        x, y = parse_float(fo.get("x")), parse_float(fo.get("y"))
        width, height = parse_float(fo.get("width")), parse_float(fo.get("height"))
        cx, cy = x + width / 2.0, y + height / 2.0
        text = " ".join("".join(fo.itertext()).split())
        replacement = None
        if text:
            if font is not None:
                replacement = _glyph_text(root, font, text, cx, cy, palette.text_color)
            if replacement is None:
                replacement = _classic_text(root, text, cx, cy, palette.text_color)
            transform = fo.get("transform")
            if transform:
                replacement.set("transform", transform)
        index = list(parent).index(fo)
        parent.remove(fo)
        if replacement is not None:
            parent.insert(index, replacement)
    return len(regions)


def _strip_live_animation(root: ET.Element) -> None:
    remove_elements(root, list(iter_tag(root, *LIVE_ANIMATION_TAGS)))
    for el in root.iter():
        style = el.get("style")
        if not style:
            continue
        kept = [decl.strip() for decl in style.split(";") if decl.strip() and not _LIVE_STYLE_PROPERTY_RE.match(decl)]
        if kept:
            el.set("style", "; ".join(kept))
        else:
            del el.attrib["style"]


def _fmt_number(value: float) -> str:
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def apply_dash_law(root: ET.Element, progress: float, duration: float) -> int:
    offset = _fmt_number(dash_offset(progress, duration))
    targets = dash_targets(root)
    for el in targets:
        el.set("stroke-dasharray", DASH_ARRAY)
        el.set("stroke-dashoffset", offset)
    return len(targets)


def apply_particle_law(
    root: ET.Element,
    progress: float,
    motion: List[Optional[PathMotionInfo]],
    palette: Palette,
    visible: bool,
) -> None:
    for index, particle in enumerate(particles(root)):
        if not visible:
            particle.set("opacity", "0")
            continue
        info = motion[index] if index < len(motion) else None
        if info is not None:
            x, y = particle_position(info, progress)
            particle.set("cx", _fmt_number(x))
            particle.set("cy", _fmt_number(y))
        particle.set("fill", palette.particle_color)
        particle.set("r", PARTICLE_RADIUS)
        particle.set("opacity", "1")


def _is_export_owned(el: ET.Element) -> bool:
    return el.get(EXPORT_MARK) is not None


def bake_styles(root: ET.Element, palette: Palette) -> None:
    """Write palette colors as presentation attributes and drop stylesheets."""
    node_shapes = descendants_of_class(root, "node", ("rect", "polygon", "circle", "ellipse", "path"))
    node_shapes += descendants_of_class(root, "nodes", ("rect",))
    for el in node_shapes:
        if _is_export_owned(el) or has_class(el, PARTICLE_CLASS):
            continue
        fill = el.get("fill")
        if not fill or fill == "none":
            el.set("fill", palette.node_background)
        el.set("stroke", palette.node_border)
        el.set("stroke-width", "2")

    for el in descendants_of_class(root, "cluster", ("rect", "polygon", "path")):
        if _is_export_owned(el):
            continue
        if not el.get("fill") or el.get("fill") == "none":
            el.set("fill", palette.node_background)
        el.set("stroke", palette.cluster_border)

    edges = descendants_of_class(root, "edgePath", ("path",)) + descendants_of_class(root, "edgePaths", ("path",))
    edges += [
        el
        for el in iter_tag(root, "path")
        if el.get("marker-end") or has_class(el, "flowchart-link") or class_contains(el, DASH_FLOW_CLASS)
    ]
    for el in edges:
        if _is_export_owned(el):
            continue
        el.set("stroke", palette.line_color)
        el.set("stroke-width", "2")
        el.set("fill", "none")

    for marker in iter_tag(root, "marker"):
        for el in iter_tag(marker, "path", "polygon"):
            el.set("fill", palette.line_color)
            el.set("stroke", palette.line_color)

    for el in descendants_of_class(root, "edgeLabel", ("rect",)):
        el.set("fill", palette.edge_label_background)

    for el in iter_tag(root, "text", "tspan"):
        if not el.get("fill"):
            el.set("fill", palette.text_color)
        el.set("font-family", CLASSIC_FONT_FAMILY)

    for el in particles(root):
        el.set("fill", palette.particle_color)

    remove_elements(root, list(iter_tag(root, "style")))


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def prepare_context(source: ET.Element, options: ExportOptions, font_cache: Optional[FontCache] = None) -> SynthesisContext:
    """Resolve palette, coordinate frame, particle paths and font for an export."""
    palette = get_theme(options.theme_id)
    frame = normalize_frame(source)
    font = None
    if options.look == "decorative" and font_cache is not None:
        font = font_cache.get()
    motion = extract_motion_info(source)
    logger.debug(f"Prepared frame context: viewBox={frame.to_view_box()} particles={len(motion)} font={'yes' if font else 'no'}")
    return SynthesisContext(frame=frame, palette=palette, options=options, motion=motion, font=font)


def synthesize_frame(source: ET.Element, context: SynthesisContext, frame_index: int) -> ET.Element:
    """Return a styled, animation-baked copy of ``source`` for one frame."""
    options = context.options
    progress = frame_progress(frame_index, options.total_frames)
    scene = copy.deepcopy(source)

    _declare_frame(scene, context.frame)
    if context.background is not None:
        _insert_background(scene, context.frame, context.background)
    _replace_rich_text(scene, context.palette, context.font)
    _strip_live_animation(scene)
    if options.shows_dash:
        apply_dash_law(scene, progress, options.duration)
    apply_particle_law(scene, progress, context.motion, context.palette, visible=options.shows_particles)
    bake_styles(scene, context.palette)
    return scene
