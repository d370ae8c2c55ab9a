"""Real rasterization through cairosvg; skipped where the cairo library is unavailable."""
from __future__ import annotations

from xml.etree import ElementTree as ET

import pytest

try:
    import cairosvg  # noqa: F401
except (ImportError, OSError) as exc:
    pytest.skip(f"cairosvg unavailable: {exc}", allow_module_level=True)

from mermaid_motion.export.compositor import open_compositor
from mermaid_motion.export.errors import RasterizationError
from mermaid_motion.export.models import ExportOptions
from mermaid_motion.export.orchestrator import export_animation_sync

RED_SCENE = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="40" height="20" viewBox="0 0 40 20">'
    '<rect x="0" y="0" width="40" height="20" fill="#ff0000"/></svg>'
)
EMPTY_SCENE = '<svg xmlns="http://www.w3.org/2000/svg" width="40" height="20" viewBox="0 0 40 20"/>'


def _pixel(buf, width, x, y):
    offset = (y * width + x) * 4
    return tuple(buf[offset:offset + 4])


def test_supersampled_frame_fills_scaled_canvas():
    compositor = open_compositor(80, 40)
    pixels = compositor.rasterize(ET.fromstring(RED_SCENE), 2)
    compositor.close()
    assert len(pixels) == 80 * 40 * 4
    assert _pixel(pixels, 80, 0, 0) == (255, 0, 0, 255)
    assert _pixel(pixels, 80, 79, 39) == (255, 0, 0, 255)


def test_surface_is_cleared_between_frames():
    compositor = open_compositor(40, 20)
    compositor.rasterize(ET.fromstring(RED_SCENE), 1)
    pixels = compositor.rasterize(ET.fromstring(EMPTY_SCENE), 1)
    compositor.close()
    assert set(pixels) == {0}


def test_invalid_surface_size():
    with pytest.raises(RasterizationError):
        open_compositor(0, 10)


def test_full_export_with_theme_background():
    scene = (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 40 20">'
        '<path class="flowchart-link dash-flow" d="M0,10 L40,10"/></svg>'
    )
    result = export_animation_sync(scene, ExportOptions(fps=4, duration=0.5, theme_id="dark-purple"))
    assert result.frame_count == 2
    assert (result.width, result.height) == (40, 20)
