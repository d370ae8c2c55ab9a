"""Preview animation injection for Mermaid SVG."""

from mermaid_motion.animation.injector import (
    build_animation_css,
    clear_animations,
    edge_paths,
    inject_animations,
    inject_dash_animation,
    inject_particle_animation,
)

__all__ = [
    "build_animation_css",
    "clear_animations",
    "edge_paths",
    "inject_animations",
    "inject_dash_animation",
    "inject_particle_animation",
]
