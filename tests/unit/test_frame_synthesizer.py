"""Frame synthesis: motion laws, style baking and snapshot self-containment."""
from __future__ import annotations

from xml.etree import ElementTree as ET

import pytest

from mermaid_motion.export.glyphs import FontCache
from mermaid_motion.export.models import ExportOptions
from mermaid_motion.export.synthesizer import (
    DASH_ARRAY,
    EXPORT_MARK,
    dash_offset,
    dash_targets,
    extract_motion_info,
    frame_progress,
    particle_position,
    particles,
    prepare_context,
    synthesize_frame,
)
from mermaid_motion.scene.svg import iter_tag, strip_ns


def _frame(root, frame_index=0, **fields):
    options = ExportOptions(**{"fps": 30, "duration": 2, **fields})
    context = prepare_context(root, options, FontCache(None))
    return synthesize_frame(root, context, frame_index), context


def _background(scene):
    return [el for el in scene.iter() if el.get(EXPORT_MARK) == "background"]


# ─── Motion laws ──────────────────────────────────────────────────────────────


def test_dash_offset_starts_at_full_period():
    assert dash_offset(0, 2) == 15


def test_dash_offset_period_depends_on_duration():
    duration = 2
    period = 1 / (2 * duration)
    for progress in (0.05, 0.1, 0.2):
        assert dash_offset(progress + period, duration) == pytest.approx(dash_offset(progress, duration))


def test_dash_offset_is_continuous_across_loop_seam():
    for duration in (1, 2, 0.5):
        assert dash_offset(1.0, duration) == pytest.approx(dash_offset(0.0, duration))


def test_progress_never_reaches_one():
    total = 60
    assert frame_progress(0, total) == 0
    assert frame_progress(total - 1, total) < 1


def test_particle_moves_from_path_start_towards_end(flowchart_root):
    (info,) = extract_motion_info(flowchart_root)
    assert info.arc_length == pytest.approx(100)
    assert particle_position(info, 0) == pytest.approx((100, 50))
    x, y = particle_position(info, frame_progress(59, 60))
    assert 195 < x < 200
    assert y == pytest.approx(50)


def test_particle_without_bound_path_has_no_motion():
    root = ET.fromstring(
        '<svg xmlns="http://www.w3.org/2000/svg"><circle class="flow-particle">'
        '<animateMotion><mpath href="#missing"/></animateMotion></circle></svg>'
    )
    assert extract_motion_info(root) == [None]


def test_dash_targets_cover_marker_edges_and_dash_flow_class():
    root = ET.fromstring(
        '<svg xmlns="http://www.w3.org/2000/svg">'
        '<path id="a" marker-end="url(#m)"/><g class="my-dash-flow-group"/><path id="c"/></svg>'
    )
    assert [strip_ns(el.tag) for el in dash_targets(root)] == ["path", "g"]


# ─── Snapshot content ─────────────────────────────────────────────────────────


def test_snapshot_declares_unscaled_frame(flowchart_root):
    scene, _ = _frame(flowchart_root, scale=2)
    assert scene.get("viewBox") == "-8 -8 1498.15625 182"
    assert scene.get("width") == "1498"
    assert scene.get("height") == "182"


def test_first_frame_dash_and_particle_state(flowchart_root):
    scene, _ = _frame(flowchart_root)
    edge = next(el for el in iter_tag(scene, "path") if el.get("id") == "L-A-B")
    assert edge.get("stroke-dasharray") == DASH_ARRAY
    assert edge.get("stroke-dashoffset") == "15"
    (particle,) = particles(scene)
    assert (particle.get("cx"), particle.get("cy")) == ("100", "50")
    assert particle.get("opacity") == "1"


def test_later_frame_advances_both_laws(flowchart_root):
    scene, context = _frame(flowchart_root, frame_index=3)
    edge = next(el for el in iter_tag(scene, "path") if el.get("id") == "L-A-B")
    progress = 3 / context.options.total_frames
    assert float(edge.get("stroke-dashoffset")) == pytest.approx(dash_offset(progress, 2), abs=1e-3)
    assert float(particles(scene)[0].get("cx")) == pytest.approx(100 + 100 * progress, abs=1e-3)


def test_dash_only_hides_particles(flowchart_root):
    scene, _ = _frame(flowchart_root, animation_type="dash")
    assert all(p.get("opacity") == "0" for p in particles(scene))


def test_particle_only_has_no_dash_pattern(flowchart_root):
    scene, _ = _frame(flowchart_root, animation_type="particle")
    assert not [el for el in scene.iter() if el.get("stroke-dasharray")]
    assert particles(scene)[0].get("opacity") == "1"


def test_theme_background_is_first_child(flowchart_root):
    scene, _ = _frame(flowchart_root, theme_id="dark-purple")
    (background,) = _background(scene)
    assert scene[0] is background
    assert background.get("fill") == "#1a1625"
    assert background.get("width") == "1498.15625"


def test_background_override_wins_over_theme(flowchart_root):
    scene, _ = _frame(flowchart_root, theme_id="dark-purple", background_color_override="#ff0000")
    assert _background(scene)[0].get("fill") == "#ff0000"


def test_transparent_export_has_no_background(flowchart_root):
    scene, _ = _frame(flowchart_root, transparent=True, background_color_override="#ff0000")
    assert _background(scene) == []


def test_snapshot_is_self_contained(flowchart_root):
    scene, _ = _frame(flowchart_root)
    assert list(iter_tag(scene, "style")) == []
    assert list(iter_tag(scene, "animate", "animateMotion", "animateTransform", "set", "mpath")) == []
    assert list(iter_tag(scene, "foreignObject")) == []
    edge = next(el for el in iter_tag(scene, "path") if el.get("id") == "L-A-B")
    assert "style" not in edge.attrib


def test_styles_are_baked_from_palette(flowchart_root):
    scene, context = _frame(flowchart_root, theme_id="light-rose")
    palette = context.palette
    node_rects = [el for el in iter_tag(scene, "rect") if "label-container" in (el.get("class") or "")]
    assert node_rects and all(el.get("fill") == palette.node_background for el in node_rects)
    assert all(el.get("stroke") == palette.node_border for el in node_rects)
    edge = next(el for el in iter_tag(scene, "path") if el.get("id") == "L-A-B")
    assert edge.get("stroke") == palette.line_color
    assert edge.get("fill") == "none"
    marker_path = next(iter_tag(next(iter_tag(scene, "marker")), "path"))
    assert marker_path.get("fill") == palette.line_color
    assert particles(scene)[0].get("fill") == palette.particle_color


def test_rich_text_becomes_centered_text(flowchart_root):
    scene, context = _frame(flowchart_root)
    texts = [el for el in iter_tag(scene, "text") if el.get(EXPORT_MARK) == "text"]
    assert [t.text for t in texts] == ["Start"]
    (label,) = texts
    assert label.get("text-anchor") == "middle"
    assert float(label.get("x")) == 0
    assert float(label.get("y")) == pytest.approx(0.35 * 14)
    assert label.get("fill") == context.palette.text_color


def test_source_scene_is_never_mutated(flowchart_root):
    before = ET.tostring(flowchart_root)
    for index in range(3):
        _frame(flowchart_root, frame_index=index)
    assert ET.tostring(flowchart_root) == before


def test_scene_without_view_box_uses_padded_bounds(plain_flowchart_svg):
    root = ET.fromstring(plain_flowchart_svg.strip())
    del root.attrib["viewBox"]
    scene, context = _frame(root)
    assert context.frame.x == pytest.approx(-10)
    assert scene.get("viewBox") == context.frame.to_view_box()


def test_unnamespaced_scene_gets_svg_namespace():
    root = ET.fromstring('<svg viewBox="0 0 10 10"><rect width="10" height="10"/></svg>')
    scene, _ = _frame(root)
    assert scene.get("xmlns") == "http://www.w3.org/2000/svg"
