from __future__ import annotations

from xml.etree import ElementTree as ET

import pytest

from mermaid_motion.scene.svg import SVG_NS

# A flowchart as rendered by Mermaid with preview animations already injected:
# one edge (100,50) -> (200,50) carrying the dash-flow class and one particle
# riding it.
FLOWCHART_SVG = f"""
<svg xmlns="{SVG_NS}" xmlns:xlink="http://www.w3.org/1999/xlink" id="mermaid-1" width="100%"
     viewBox="-8 -8 1498.15625 182" style="max-width: 1498.15625px;">
  <style>#mermaid-1 .node rect {{ fill: #ececff; }}</style>
  <g>
    <marker id="arrowhead" viewBox="0 0 10 10" refX="9" refY="5">
      <path d="M0,0 L10,5 L0,10 z" class="arrowMarkerPath"/>
    </marker>
    <g class="edgePaths">
      <path id="L-A-B" d="M100,50 L200,50" class="flowchart-link dash-flow" marker-end="url(#arrowhead)"
            style="--animation-speed: 1s; animation: animEdgeFlow 1s linear infinite"/>
    </g>
    <g class="edgeLabels">
      <g class="edgeLabel"><rect width="0" height="0"/></g>
    </g>
    <g class="nodes">
      <g class="node default" id="flowchart-A" transform="translate(50,50)">
        <rect class="basic label-container" x="-40" y="-20" width="80" height="40"/>
        <foreignObject x="-30" y="-10" width="60" height="20">
          <div xmlns="http://www.w3.org/1999/xhtml"><span class="nodeLabel">Start</span></div>
        </foreignObject>
      </g>
      <g class="node default" id="flowchart-B" transform="translate(250,50)">
        <rect class="basic label-container" x="-40" y="-20" width="80" height="40"/>
      </g>
    </g>
    <circle r="4" class="flow-particle" fill="#0ea5e9">
      <animateMotion dur="2s" repeatCount="indefinite" calcMode="linear">
        <mpath href="#L-A-B"/>
      </animateMotion>
    </circle>
  </g>
</svg>
"""

# The same diagram before any preview animation is injected.
PLAIN_FLOWCHART_SVG = f"""
<svg xmlns="{SVG_NS}" viewBox="0 0 300 100">
  <marker id="arrowhead"><path d="M0,0 L10,5 L0,10 z"/></marker>
  <g class="edgePaths">
    <path d="M100,50 L200,50" class="flowchart-link" marker-end="url(#arrowhead)"/>
    <path d="M100,60 L200,90" class="flowchart-link"/>
  </g>
  <g class="nodes"><g class="node"><rect x="10" y="30" width="80" height="40"/></g></g>
</svg>
"""


@pytest.fixture
def flowchart_svg() -> str:
    return FLOWCHART_SVG


@pytest.fixture
def flowchart_root() -> ET.Element:
    return ET.fromstring(FLOWCHART_SVG.strip())


@pytest.fixture
def plain_flowchart_svg() -> str:
    return PLAIN_FLOWCHART_SVG


def _build_font(path: str) -> str:
    from fontTools.fontBuilder import FontBuilder
    from fontTools.pens.ttGlyphPen import TTGlyphPen

    def box():
        pen = TTGlyphPen(None)
        pen.moveTo((100, 0))
        pen.lineTo((100, 700))
        pen.lineTo((500, 700))
        pen.lineTo((500, 0))
        pen.closePath()
        return pen.glyph()

    glyph_order = [".notdef", "space", "A", "B"]
    builder = FontBuilder(1000, isTTF=True)
    builder.setupGlyphOrder(glyph_order)
    builder.setupCharacterMap({ord(" "): "space", ord("A"): "A", ord("B"): "B"})
    builder.setupGlyf({".notdef": TTGlyphPen(None).glyph(), "space": TTGlyphPen(None).glyph(), "A": box(), "B": box()})
    builder.setupHorizontalMetrics({name: (600, 0 if name in (".notdef", "space") else 100) for name in glyph_order})
    builder.setupHorizontalHeader(ascent=800, descent=-200)
    builder.setupNameTable({"familyName": "Boxes", "styleName": "Regular"})
    builder.setupOS2()
    builder.setupPost()
    builder.save(path)
    return path


@pytest.fixture
def box_font_path(tmp_path) -> str:
    """A tiny TrueType font whose 'A' and 'B' are 400x700 boxes on a 600 advance."""
    return _build_font(str(tmp_path / "boxes.ttf"))
