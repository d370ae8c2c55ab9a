from __future__ import annotations

import math

import pytest

from mermaid_motion.scene.path_geometry import (
    PathGeometry,
    PathSegment,
    PathSyntaxError,
    format_path,
    parse_path,
    point_at_length,
    transform_path,
)


def test_parse_splits_implicit_repeats():
    segments = parse_path("M0,0 10,0 10,10 L20 20 30 30")
    assert [s.command for s in segments] == ["M", "L", "L", "L", "L"]
    assert segments[1].values == (10.0, 0.0)


def test_parse_keeps_relative_flag():
    segments = parse_path("m5 5 l10 0 h-3 v4 z")
    assert [s.letter for s in segments] == ["m", "l", "h", "v", "z"]
    assert all(s.relative for s in segments)


def test_parse_compact_numbers_and_arc_flags():
    segments = parse_path("M.5-.5A5 5 0 1010 10")
    assert segments[0].values == (0.5, -0.5)
    assert segments[1].values == (5.0, 5.0, 0.0, 1.0, 0.0, 10.0, 10.0)


def test_parse_empty_is_empty():
    assert parse_path("") == []
    assert parse_path(None) == []


def test_parse_rejects_garbage():
    with pytest.raises(PathSyntaxError):
        parse_path("M0 0 X 10 10")


def test_format_trims_numbers():
    segments = [PathSegment("M", False, (1.0, -0.0)), PathSegment("L", True, (2.5, 1 / 3)), PathSegment("Z", False)]
    assert format_path(segments) == "M1 0l2.5 0.333Z"


def test_transform_translates_only_absolute_commands():
    segments = parse_path("M10 10 l5 5 L20 20")
    moved = transform_path(segments, 2, -2, 100, 50)
    assert moved[0].values == (120.0, 30.0)
    assert moved[1].values == (10.0, -10.0)
    assert moved[2].values == (140.0, 10.0)


def test_transform_arc_scales_radii_and_keeps_flags():
    (arc,) = transform_path(parse_path("A10 20 30 1 0 40 50")[0:1], 0.5, -0.5, 1, 1)
    assert arc.values == (5.0, 10.0, 30.0, 1.0, 0.0, 21.0, -24.0)


def test_length_of_polyline():
    geometry = PathGeometry.from_d("M0 0 H30 V40")
    assert geometry.length == pytest.approx(70)
    assert geometry.start == (0, 0)
    assert geometry.end == (30, 40)


def test_length_of_closed_square():
    assert PathGeometry.from_d("M0 0 h10 v10 h-10 z").length == pytest.approx(40)


def test_length_of_quarter_arc():
    geometry = PathGeometry.from_d("M10 0 A10 10 0 0 1 0 10")
    assert geometry.length == pytest.approx(math.pi * 5, rel=1e-3)


def test_length_of_cubic_line():
    # Control points on the chord: a straight curve.
    assert PathGeometry.from_d("M0 0 C10 0 20 0 30 0").length == pytest.approx(30)


def test_subpath_move_adds_no_length():
    assert PathGeometry.from_d("M0 0 L10 0 M100 100 L100 110").length == pytest.approx(20)


def test_point_at_length_interpolates_and_clamps():
    geometry = PathGeometry.from_d("M0 0 L10 0 L10 10")
    assert point_at_length(geometry, 5) == pytest.approx((5, 0))
    assert point_at_length(geometry, 15) == pytest.approx((10, 5))
    assert point_at_length(geometry, -3) == (0, 0)
    assert point_at_length(geometry, 99) == (10, 10)


def test_move_only_path_has_a_start():
    geometry = PathGeometry.from_d("M7 8")
    assert geometry.length == 0
    assert geometry.point_at_length(3) == (7, 8)
