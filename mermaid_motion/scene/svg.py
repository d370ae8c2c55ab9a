"""ElementTree helpers for SVG scenes: tags, classes, transforms, bounds."""
from __future__ import annotations

import math
import re
from typing import Iterable, Iterator, List, Optional, Tuple, Union
from xml.etree import ElementTree as ET

from mermaid_motion.scene.path_geometry import PathGeometry, PathSyntaxError

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

# a b c d e f, as in the SVG matrix() transform
Matrix = Tuple[float, float, float, float, float, float]
IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

# Containers whose content is never painted directly.
NON_RENDERED = {"defs", "marker", "clipPath", "mask", "pattern", "symbol", "style", "title", "desc", "metadata", "script"}

_TRANSFORM_RE = re.compile(r"(matrix|translate|scale|rotate|skewX|skewY)\s*\(([^)]*)\)")
_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

SceneInput = Union[ET.Element, str, bytes]


def register_svg_namespace() -> None:
    """Ensure the default SVG namespace is registered for serialization."""
    ET.register_namespace("", SVG_NS)
    ET.register_namespace("xlink", XLINK_NS)


def strip_ns(tag: str) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.split("}")[-1] if "}" in tag else tag


def namespace_of(el: ET.Element) -> str:
    tag = el.tag if isinstance(el.tag, str) else ""
    if tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return ""


def make_tag(root: ET.Element, local: str) -> str:
    """Qualified tag for ``local`` in the same namespace as ``root``."""
    ns = namespace_of(root)
    return f"{{{ns}}}{local}" if ns else local


def iter_tag(el: ET.Element, *tags: str) -> Iterator[ET.Element]:
    wanted = set(tags)
    for child in el.iter():
        if strip_ns(child.tag) in wanted:
            yield child


def classes(el: ET.Element) -> List[str]:
    return [c for c in (el.get("class") or "").split() if c]


def has_class(el: ET.Element, name: str) -> bool:
    return name in classes(el)


def class_contains(el: ET.Element, fragment: str) -> bool:
    return fragment in (el.get("class") or "")


def append_class(el: ET.Element, class_name: str) -> None:
    existing = classes(el)
    if class_name not in existing:
        existing.append(class_name)
    el.set("class", " ".join(existing))


def remove_class(el: ET.Element, class_name: str) -> None:
    remaining = [c for c in classes(el) if c != class_name]
    if remaining:
        el.set("class", " ".join(remaining))
    elif "class" in el.attrib:
        del el.attrib["class"]


def descendants_of_class(root: ET.Element, class_name: str, tags: Iterable[str]) -> List[ET.Element]:
    """Elements with a local tag in ``tags`` below any element carrying ``class_name``.

    Mirrors the CSS descendant selector ``.class_name tag``; each element is
    returned once, in document order.
    """
    wanted = set(tags)
    matched = set()
    for el in root.iter():
        if not has_class(el, class_name):
            continue
        for child in el.iter():
            if child is not el and strip_ns(child.tag) in wanted:
                matched.add(id(child))
    return [el for el in root.iter() if id(el) in matched]


def parent_map(root: ET.Element) -> dict:
    return {child: parent for parent in root.iter() for child in parent}


def remove_elements(root: ET.Element, elements: Iterable[ET.Element]) -> int:
    parents = parent_map(root)
    removed = 0
    for el in list(elements):
        parent = parents.get(el)
        if parent is not None:
            parent.remove(el)
            removed += 1
    return removed


def parse_float(value: Optional[str], default: float = 0.0) -> float:
    if value is None:
        return default
    match = _NUMBER_RE.match(value.strip())
    if not match:
        return default
    return float(match.group(0))


def load_scene(scene: SceneInput) -> ET.Element:
    """Return an Element for SVG text, bytes or an existing Element (not copied)."""
    if isinstance(scene, ET.Element):
        return scene
    if isinstance(scene, bytes):
        return ET.fromstring(scene)
    return ET.fromstring(scene.strip())


def serialize_scene(root: ET.Element) -> bytes:
    register_svg_namespace()
    return ET.tostring(root, encoding="utf-8")


# ---------------------------------------------------------------------------
# Transforms and bounds
# ---------------------------------------------------------------------------


def multiply(m: Matrix, n: Matrix) -> Matrix:
    a1, b1, c1, d1, e1, f1 = m
    a2, b2, c2, d2, e2, f2 = n
    return (
        a1 * a2 + c1 * b2,
        b1 * a2 + d1 * b2,
        a1 * c2 + c1 * d2,
        b1 * c2 + d1 * d2,
        a1 * e2 + c1 * f2 + e1,
        b1 * e2 + d1 * f2 + f1,
    )


def apply(m: Matrix, point: Tuple[float, float]) -> Tuple[float, float]:
    a, b, c, d, e, f = m
    x, y = point
    return (a * x + c * y + e, b * x + d * y + f)


def parse_transform(value: Optional[str]) -> Matrix:
    """Parse an SVG ``transform`` attribute into a single matrix."""
    result = IDENTITY
    if not value:
        return result
    for name, args_text in _TRANSFORM_RE.findall(value):
        args = [float(n) for n in _NUMBER_RE.findall(args_text)]
        if name == "matrix" and len(args) == 6:
            m = tuple(args)
        elif name == "translate" and args:
            m = (1.0, 0.0, 0.0, 1.0, args[0], args[1] if len(args) > 1 else 0.0)
        elif name == "scale" and args:
            sx = args[0]
            sy = args[1] if len(args) > 1 else sx
            m = (sx, 0.0, 0.0, sy, 0.0, 0.0)
        elif name == "rotate" and args:
            angle = math.radians(args[0])
            cos_a, sin_a = math.cos(angle), math.sin(angle)
            m = (cos_a, sin_a, -sin_a, cos_a, 0.0, 0.0)
            if len(args) == 3:
                cx, cy = args[1], args[2]
                m = multiply(multiply((1.0, 0.0, 0.0, 1.0, cx, cy), m), (1.0, 0.0, 0.0, 1.0, -cx, -cy))
        elif name == "skewX" and args:
            m = (1.0, 0.0, math.tan(math.radians(args[0])), 1.0, 0.0, 0.0)
        elif name == "skewY" and args:
            m = (1.0, math.tan(math.radians(args[0])), 0.0, 1.0, 0.0, 0.0)
        else:
            continue
        result = multiply(result, m)
    return result


def _local_points(el: ET.Element) -> List[Tuple[float, float]]:
    tag = strip_ns(el.tag)
    if tag in ("rect", "foreignObject", "image"):
        x, y = parse_float(el.get("x")), parse_float(el.get("y"))
        w, h = parse_float(el.get("width")), parse_float(el.get("height"))
        if w <= 0 or h <= 0:
            return []
        return [(x, y), (x + w, y), (x, y + h), (x + w, y + h)]
    if tag in ("circle", "ellipse"):
        cx, cy = parse_float(el.get("cx")), parse_float(el.get("cy"))
        if tag == "circle":
            rx = ry = parse_float(el.get("r"))
        else:
            rx, ry = parse_float(el.get("rx")), parse_float(el.get("ry"))
        if rx <= 0 or ry <= 0:
            return []
        return [(cx - rx, cy - ry), (cx + rx, cy - ry), (cx - rx, cy + ry), (cx + rx, cy + ry)]
    if tag == "line":
        return [
            (parse_float(el.get("x1")), parse_float(el.get("y1"))),
            (parse_float(el.get("x2")), parse_float(el.get("y2"))),
        ]
    if tag in ("polyline", "polygon"):
        numbers = [float(n) for n in _NUMBER_RE.findall(el.get("points") or "")]
        return list(zip(numbers[0::2], numbers[1::2]))
    if tag == "path":
        try:
            return PathGeometry.from_d(el.get("d")).sample_points()
        except PathSyntaxError:
            return []
    if tag == "text":
        if not "".join(el.itertext()).strip():
            return []
        return [(parse_float(el.get("x")), parse_float(el.get("y")))]
    return []


def bounding_box(root: ET.Element) -> Optional[Tuple[float, float, float, float]]:
    """Union of painted geometry in root user space as ``(x, y, width, height)``.

    Group transforms are honoured; non-rendered containers and shapes placed
    by ``animateMotion`` are skipped.
    Returns ``None`` when nothing painted is found.
    """
    xs: List[float] = []
    ys: List[float] = []

    def visit(el: ET.Element, matrix: Matrix, is_root: bool) -> None:
        tag = strip_ns(el.tag)
        if tag in NON_RENDERED:
            return
        # Position comes from the motion path, which is measured on its own.
        if any(strip_ns(child.tag) == "animateMotion" for child in el):
            return
        if not is_root:
            matrix = multiply(matrix, parse_transform(el.get("transform")))
        for point in _local_points(el):
            x, y = apply(matrix, point)
            xs.append(x)
            ys.append(y)
        if tag == "foreignObject":
            return
        for child in el:
            visit(child, matrix, False)

    visit(root, IDENTITY, True)
    if not xs:
        return None
    min_x, min_y = min(xs), min(ys)
    return (min_x, min_y, max(xs) - min_x, max(ys) - min_y)
