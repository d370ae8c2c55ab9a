"""Structured SVG path data: parse, transform, serialize, measure.

Path data is parsed into a flat list of ``PathSegment`` values (one per command
repetition, each carrying its own absolute/relative flag). Transforms and
measurements operate on that structure instead of on raw strings, and the
geometry side needs no live document to answer arc-length queries.
"""
from __future__ import annotations

import bisect
import math
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

Point = Tuple[float, float]

# Number of arguments consumed by one repetition of each command.
ARG_COUNTS = {
    "M": 2,
    "L": 2,
    "H": 1,
    "V": 1,
    "C": 6,
    "S": 4,
    "Q": 4,
    "T": 2,
    "A": 7,
    "Z": 0,
}

CURVE_SAMPLES = 48

_NUMBER_CHARS = set("0123456789.-+eE")


class PathSyntaxError(ValueError):
    """Raised when path data cannot be parsed."""


@dataclass(frozen=True)
class PathSegment:
    command: str  # upper-case command letter
    relative: bool
    values: Tuple[float, ...] = ()

    @property
    def letter(self) -> str:
        return self.command.lower() if self.relative else self.command


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class _Scanner:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def skip_separators(self) -> None:
        while self.pos < len(self.text) and (self.text[self.pos].isspace() or self.text[self.pos] == ","):
            self.pos += 1

    def at_end(self) -> bool:
        self.skip_separators()
        return self.pos >= len(self.text)

    def peek(self) -> str:
        self.skip_separators()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def read_command(self) -> Optional[str]:
        ch = self.peek()
        if ch and ch.upper() in ARG_COUNTS:
            self.pos += 1
            return ch
        return None

    def read_flag(self) -> float:
        ch = self.peek()
        if ch not in ("0", "1"):
            raise PathSyntaxError(f"Expected arc flag at offset {self.pos} in path data")
        self.pos += 1
        return float(ch)

    def read_number(self) -> float:
        self.skip_separators()
        text = self.text
        start = self.pos
        i = start
        if i < len(text) and text[i] in "+-":
            i += 1
        seen_dot = False
        seen_digit = False
        while i < len(text):
            ch = text[i]
            if ch.isdigit():
                seen_digit = True
            elif ch == "." and not seen_dot:
                seen_dot = True
            else:
                break
            i += 1
        if seen_digit and i < len(text) and text[i] in "eE":
            j = i + 1
            if j < len(text) and text[j] in "+-":
                j += 1
            if j < len(text) and text[j].isdigit():
                while j < len(text) and text[j].isdigit():
                    j += 1
                i = j
        if not seen_digit:
            raise PathSyntaxError(f"Expected number at offset {start} in path data")
        self.pos = i
        return float(text[start:i])

    def has_number(self) -> bool:
        ch = self.peek()
        return bool(ch) and ch in _NUMBER_CHARS and ch not in "eE"


def parse_path(d: Optional[str]) -> List[PathSegment]:
    """Parse SVG path data into segments.

    Implicit repetitions are split into separate segments; extra coordinate
    pairs after a move become line segments with the same relative flag.
    """
    segments: List[PathSegment] = []
    if not d:
        return segments
    scanner = _Scanner(d)
    while not scanner.at_end():
        letter = scanner.read_command()
        if letter is None:
            raise PathSyntaxError(f"Expected path command at offset {scanner.pos}: {d[scanner.pos:scanner.pos + 10]!r}")
        command = letter.upper()
        relative = letter.islower()
        if command == "Z":
            segments.append(PathSegment("Z", relative))
            continue
        count = ARG_COUNTS[command]
        first = True
        while first or scanner.has_number():
            values: List[float] = []
            for index in range(count):
                if command == "A" and index in (3, 4):
                    values.append(scanner.read_flag())
                else:
                    values.append(scanner.read_number())
            segment_command = command
            if command == "M" and not first:
                segment_command = "L"
            segments.append(PathSegment(segment_command, relative, tuple(values)))
            first = False
    return segments


def _fmt(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def format_path(segments: Sequence[PathSegment]) -> str:
    parts = []
    for seg in segments:
        if seg.command == "A":
            rx, ry, rot, large, sweep, x, y = seg.values
            body = " ".join([_fmt(rx), _fmt(ry), _fmt(rot), str(int(large)), str(int(sweep)), _fmt(x), _fmt(y)])
            parts.append(f"{seg.letter}{body}")
        elif seg.values:
            parts.append(seg.letter + " ".join(_fmt(v) for v in seg.values))
        else:
            parts.append(seg.letter)
    return "".join(parts)


# ---------------------------------------------------------------------------
# Transform
# ---------------------------------------------------------------------------


def transform_path(
    segments: Sequence[PathSegment],
    scale_x: float,
    scale_y: float,
    translate_x: float = 0.0,
    translate_y: float = 0.0,
) -> List[PathSegment]:
    """Apply ``p' = (x*scale_x + translate_x, y*scale_y + translate_y)``.

    Relative commands are scaled but not translated. Arc radii are scaled by
    the absolute scale factors; rotation and both flags are kept as-is.
    """
    out: List[PathSegment] = []
    for seg in segments:
        tx = 0.0 if seg.relative else translate_x
        ty = 0.0 if seg.relative else translate_y
        v = seg.values
        if seg.command == "Z":
            values: Tuple[float, ...] = ()
        elif seg.command == "H":
            values = (v[0] * scale_x + tx,)
        elif seg.command == "V":
            values = (v[0] * scale_y + ty,)
        elif seg.command == "A":
            values = (
                v[0] * abs(scale_x),
                v[1] * abs(scale_y),
                v[2],
                v[3],
                v[4],
                v[5] * scale_x + tx,
                v[6] * scale_y + ty,
            )
        else:
            values = tuple(
                value * scale_x + tx if index % 2 == 0 else value * scale_y + ty
                for index, value in enumerate(v)
            )
        out.append(PathSegment(seg.command, seg.relative, values))
    return out


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


def _lerp(a: Point, b: Point, t: float) -> Point:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def _cubic_point(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    mt = 1.0 - t
    a = mt * mt * mt
    b = 3 * mt * mt * t
    c = 3 * mt * t * t
    d = t * t * t
    return (
        a * p0[0] + b * p1[0] + c * p2[0] + d * p3[0],
        a * p0[1] + b * p1[1] + c * p2[1] + d * p3[1],
    )


def _quad_point(p0: Point, p1: Point, p2: Point, t: float) -> Point:
    mt = 1.0 - t
    return (
        mt * mt * p0[0] + 2 * mt * t * p1[0] + t * t * p2[0],
        mt * mt * p0[1] + 2 * mt * t * p1[1] + t * t * p2[1],
    )


def _vector_angle(ux: float, uy: float, vx: float, vy: float) -> float:
    return math.atan2(ux * vy - uy * vx, ux * vx + uy * vy)


def _arc_points(
    start: Point, rx: float, ry: float, rotation: float, large: bool, sweep: bool, end: Point
) -> List[Point]:
    """Sample an elliptical arc using the endpoint-to-center conversion."""
    x1, y1 = start
    x2, y2 = end
    if (x1, y1) == (x2, y2):
        return []
    rx, ry = abs(rx), abs(ry)
    if rx == 0 or ry == 0:
        return [end]
    phi = math.radians(rotation)
    cos_phi, sin_phi = math.cos(phi), math.sin(phi)
    dx2 = (x1 - x2) / 2.0
    dy2 = (y1 - y2) / 2.0
    x1p = cos_phi * dx2 + sin_phi * dy2
    y1p = -sin_phi * dx2 + cos_phi * dy2
    lam = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
    if lam > 1:
        root = math.sqrt(lam)
        rx *= root
        ry *= root
    num = rx * rx * ry * ry - rx * rx * y1p * y1p - ry * ry * x1p * x1p
    den = rx * rx * y1p * y1p + ry * ry * x1p * x1p
    coef = math.sqrt(max(0.0, num / den)) if den else 0.0
    if large == sweep:
        coef = -coef
    cxp = coef * rx * y1p / ry
    cyp = -coef * ry * x1p / rx
    cx = cos_phi * cxp - sin_phi * cyp + (x1 + x2) / 2.0
    cy = sin_phi * cxp + cos_phi * cyp + (y1 + y2) / 2.0
    theta1 = _vector_angle(1.0, 0.0, (x1p - cxp) / rx, (y1p - cyp) / ry)
    dtheta = _vector_angle((x1p - cxp) / rx, (y1p - cyp) / ry, (-x1p - cxp) / rx, (-y1p - cyp) / ry)
    if not sweep and dtheta > 0:
        dtheta -= 2 * math.pi
    elif sweep and dtheta < 0:
        dtheta += 2 * math.pi
    points = []
    for i in range(1, CURVE_SAMPLES + 1):
        angle = theta1 + dtheta * i / CURVE_SAMPLES
        points.append(
            (
                cx + rx * cos_phi * math.cos(angle) - ry * sin_phi * math.sin(angle),
                cy + rx * sin_phi * math.cos(angle) + ry * cos_phi * math.sin(angle),
            )
        )
    points[-1] = end
    return points


def _iter_polylines(segments: Sequence[PathSegment]) -> Iterator[List[Point]]:
    """Yield one sampled polyline per subpath, in absolute coordinates."""
    current: Point = (0.0, 0.0)
    subpath_start: Point = (0.0, 0.0)
    last_cubic_ctrl: Optional[Point] = None
    last_quad_ctrl: Optional[Point] = None
    polyline: List[Point] = []

    for seg in segments:
        cmd = seg.command
        v = seg.values
        ox, oy = current if seg.relative else (0.0, 0.0)

        def pt(i: int) -> Point:
            return (v[i] + ox, v[i + 1] + oy)

        cubic_ctrl: Optional[Point] = None
        quad_ctrl: Optional[Point] = None

        if cmd == "M":
            if len(polyline) > 1:
                yield polyline
            current = pt(0)
            subpath_start = current
            polyline = [current]
        else:
            if not polyline:
                polyline = [current]
            if cmd == "L":
                current = pt(0)
                polyline.append(current)
            elif cmd == "H":
                current = (v[0] + ox, current[1])
                polyline.append(current)
            elif cmd == "V":
                current = (current[0], v[0] + oy)
                polyline.append(current)
            elif cmd in ("C", "S"):
                if cmd == "C":
                    c1, c2, end = pt(0), pt(2), pt(4)
                else:
                    c1 = current
                    if last_cubic_ctrl is not None:
                        c1 = (2 * current[0] - last_cubic_ctrl[0], 2 * current[1] - last_cubic_ctrl[1])
                    c2, end = pt(0), pt(2)
                start = current
                polyline.extend(_cubic_point(start, c1, c2, end, i / CURVE_SAMPLES) for i in range(1, CURVE_SAMPLES + 1))
                cubic_ctrl = c2
                current = end
            elif cmd in ("Q", "T"):
                if cmd == "Q":
                    c1, end = pt(0), pt(2)
                else:
                    c1 = current
                    if last_quad_ctrl is not None:
                        c1 = (2 * current[0] - last_quad_ctrl[0], 2 * current[1] - last_quad_ctrl[1])
                    end = pt(0)
                start = current
                polyline.extend(_quad_point(start, c1, end, i / CURVE_SAMPLES) for i in range(1, CURVE_SAMPLES + 1))
                quad_ctrl = c1
                current = end
            elif cmd == "A":
                end = (v[5] + ox, v[6] + oy)
                polyline.extend(_arc_points(current, v[0], v[1], v[2], bool(v[3]), bool(v[4]), end))
                current = end
            elif cmd == "Z":
                if current != subpath_start:
                    polyline.append(subpath_start)
                current = subpath_start
                yield polyline
                polyline = [current]
        last_cubic_ctrl = cubic_ctrl
        last_quad_ctrl = quad_ctrl

    if len(polyline) > 1:
        yield polyline


class PathGeometry:
    """Arc-length table over a parsed path.

    Subpaths are concatenated in drawing order; a move between subpaths does
    not add length.
    """

    def __init__(self, segments: Sequence[PathSegment]):
        self.segments = list(segments)
        self._points: List[Point] = []
        self._lengths: List[float] = []
        total = 0.0
        for polyline in _iter_polylines(self.segments):
            prev = polyline[0]
            self._points.append(prev)
            self._lengths.append(total)
            for point in polyline[1:]:
                total += math.hypot(point[0] - prev[0], point[1] - prev[1])
                self._points.append(point)
                self._lengths.append(total)
                prev = point
        if not self._points:
            start = self._first_move()
            if start is not None:
                self._points.append(start)
                self._lengths.append(0.0)

    @classmethod
    def from_d(cls, d: Optional[str]) -> "PathGeometry":
        return cls(parse_path(d))

    def _first_move(self) -> Optional[Point]:
        for seg in self.segments:
            if seg.command == "M":
                return (seg.values[0], seg.values[1])
        return None

    @property
    def length(self) -> float:
        return self._lengths[-1] if self._lengths else 0.0

    @property
    def start(self) -> Point:
        return self._points[0] if self._points else (0.0, 0.0)

    @property
    def end(self) -> Point:
        return self._points[-1] if self._points else (0.0, 0.0)

    def point_at_length(self, distance: float) -> Point:
        """Point reached after travelling ``distance`` along the path (clamped)."""
        if not self._points:
            return (0.0, 0.0)
        if distance <= 0:
            return self._points[0]
        if distance >= self.length:
            return self._points[-1]
        index = bisect.bisect_left(self._lengths, distance)
        before = self._lengths[index - 1]
        span = self._lengths[index] - before
        t = (distance - before) / span if span else 0.0
        return _lerp(self._points[index - 1], self._points[index], t)

    def sample_points(self) -> List[Point]:
        return list(self._points)


def point_at_length(geometry: PathGeometry, distance: float) -> Point:
    return geometry.point_at_length(distance)
