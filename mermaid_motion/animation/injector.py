"""Inject preview animations (flowing dashes, moving particles) into Mermaid SVG.

Edge paths get the ``dash-flow`` class driven by a CSS keyframe rule; each
edge also gets a ``flow-particle`` circle riding it via ``animateMotion``.
The exporter reads the same markers back when it bakes frames.
"""
from __future__ import annotations

import logging
from typing import List, Literal
from xml.etree import ElementTree as ET

from mermaid_motion.scene.svg import (
    XLINK_NS,
    append_class,
    class_contains,
    descendants_of_class,
    has_class,
    iter_tag,
    load_scene,
    make_tag,
    register_svg_namespace,
    remove_class,
    remove_elements,
)

logger = logging.getLogger(__name__)

AnimationType = Literal["dash", "particle", "both"]

DASH_FLOW_CLASS = "dash-flow"
PARTICLE_CLASS = "flow-particle"
PAUSED_CLASS = "animation-paused"
STYLE_MARK = "data-flow-animation"
SPEED_PROPERTY = "--animation-speed"

# Seconds for one particle lap at speed 1.
PARTICLE_LAP_SECONDS = 2.0
PARTICLE_RADIUS = "4"
PARTICLE_COLOR = "#0ea5e9"

# Class names used for edges across Mermaid releases.
_EDGE_CLASSES = ("flowchart-link", "edge-pattern-solid", "edge-pattern-dotted")


def edge_paths(root: ET.Element) -> List[ET.Element]:
    """Connective paths in document order, each once. Arrowhead shapes inside markers are skipped."""
    marker_shapes = {id(el) for marker in iter_tag(root, "marker") for el in marker.iter()}
    grouped = descendants_of_class(root, "edgePath", ("path",)) + descendants_of_class(root, "edgePaths", ("path",))
    in_edge_group = {id(el) for el in grouped}
    paths = []
    for el in iter_tag(root, "path"):
        if id(el) in marker_shapes:
            continue
        if (
            id(el) in in_edge_group
            or any(has_class(el, name) for name in _EDGE_CLASSES)
            or class_contains(el, "edge")
            or class_contains(el, "link")
            or el.get("marker-end")
        ):
            paths.append(el)
    return paths


def build_animation_css() -> str:
    """CSS for the dash-flow effect and the paused state."""
    lines = [
        "/* Edge flow animation - stroke dash offset creates flow effect */",
        "@keyframes animEdgeFlow {",
        "  0% { stroke-dashoffset: 30; }",
        "  100% { stroke-dashoffset: 0; }",
        "}",
        f".{DASH_FLOW_CLASS} {{",
        "  stroke-dasharray: 10 5;",
        f"  animation: animEdgeFlow var({SPEED_PROPERTY}, 1s) linear infinite;",
        "}",
        f".{PAUSED_CLASS} .{DASH_FLOW_CLASS} {{ animation-play-state: paused; }}",
    ]
    return "\n".join(lines)


def _set_style_property(el: ET.Element, name: str, value: str) -> None:
    decls = [d.strip() for d in (el.get("style") or "").split(";") if d.strip()]
    decls = [d for d in decls if not d.startswith(f"{name}:")]
    decls.append(f"{name}: {value}")
    el.set("style", "; ".join(decls))


def _remove_style_property(el: ET.Element, name: str) -> None:
    decls = [d.strip() for d in (el.get("style") or "").split(";") if d.strip()]
    kept = [d for d in decls if not d.startswith(f"{name}:")]
    if kept:
        el.set("style", "; ".join(kept))
    elif "style" in el.attrib:
        del el.attrib["style"]


def _ensure_style_element(root: ET.Element) -> ET.Element:
    for el in iter_tag(root, "style"):
        if el.get(STYLE_MARK) is not None:
            return el
    style_el = ET.Element(make_tag(root, "style"))
    style_el.set(STYLE_MARK, "true")
    root.insert(0, style_el)
    return style_el


def inject_dash_animation(root: ET.Element, speed: float = 1.0) -> int:
    paths = edge_paths(root)
    for el in paths:
        append_class(el, DASH_FLOW_CLASS)
        _set_style_property(el, SPEED_PROPERTY, f"{1 / speed:g}s")
    _ensure_style_element(root).text = build_animation_css()
    return len(paths)


def inject_particle_animation(root: ET.Element, speed: float = 1.0) -> int:
    paths = edge_paths(root)
    taken = {el.get("id") for el in root.iter() if el.get("id")}
    for index, path in enumerate(paths):
        path_id = path.get("id")
        if not path_id:
            path_id = f"edge-path-{index}"
            while path_id in taken:
                path_id += "-x"
            path.set("id", path_id)
            taken.add(path_id)

        circle = ET.SubElement(root, make_tag(root, "circle"))
        circle.set("r", PARTICLE_RADIUS)
        circle.set("fill", PARTICLE_COLOR)
        circle.set("class", PARTICLE_CLASS)
        motion = ET.SubElement(circle, make_tag(root, "animateMotion"))
        motion.set("dur", f"{PARTICLE_LAP_SECONDS / speed:g}s")
        motion.set("repeatCount", "indefinite")
        motion.set("calcMode", "linear")
        mpath = ET.SubElement(motion, make_tag(root, "mpath"))
        mpath.set("href", f"#{path_id}")
        mpath.set(f"{{{XLINK_NS}}}href", f"#{path_id}")
    return len(paths)


def clear_animations(root: ET.Element) -> None:
    for el in root.iter():
        if has_class(el, DASH_FLOW_CLASS):
            remove_class(el, DASH_FLOW_CLASS)
            _remove_style_property(el, SPEED_PROPERTY)
    remove_elements(root, [el for el in root.iter() if has_class(el, PARTICLE_CLASS)])
    remove_elements(root, [el for el in iter_tag(root, "style") if el.get(STYLE_MARK) is not None])


def inject_animations(svg_text: str, animation_type: AnimationType = "both", speed: float = 1.0) -> str:
    """Return ``svg_text`` with preview animations for ``animation_type`` injected.

    Existing injected animations are cleared first, so the call is idempotent.
    """
    if speed <= 0:
        raise ValueError("speed must be positive")
    root = load_scene(svg_text)
    clear_animations(root)
    dash_count = particle_count = 0
    if animation_type in ("dash", "both"):
        dash_count = inject_dash_animation(root, speed)
    if animation_type in ("particle", "both"):
        particle_count = inject_particle_animation(root, speed)
    logger.debug(f"Injected {dash_count} dash-flow edges and {particle_count} particles")
    register_svg_namespace()
    return ET.tostring(root, encoding="unicode")
