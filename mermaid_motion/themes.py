"""Static theme registry: theme id -> color palette.

Three dark and three light palettes. The registry is read-only; exports
resolve a palette once and never mutate it.
"""
from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict


DEFAULT_THEME_ID = "dark-cyan"


class UnknownThemeError(KeyError):
    """Raised when a theme id is not in the registry."""

    def __init__(self, theme_id: str):
        super().__init__(theme_id)
        self.theme_id = theme_id

    def __str__(self) -> str:
        known = ", ".join(sorted(THEMES))
        return f"Unknown theme '{self.theme_id}' (known themes: {known})"


class Palette(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    is_dark: bool
    background: str
    node_background: str
    node_border: str
    line_color: str
    text_color: str
    particle_color: str
    cluster_border: str
    edge_label_background: str


THEMES: Dict[str, Palette] = {
    "dark-cyan": Palette(
        name="Dark Cyan",
        is_dark=True,
        background="#0f172a",
        node_background="#1e293b",
        node_border="#0ea5e9",
        line_color="#0ea5e9",
        text_color="#f1f5f9",
        particle_color="#0ea5e9",
        cluster_border="#475569",
        edge_label_background="#1e293b",
    ),
    "dark-purple": Palette(
        name="Dark Purple",
        is_dark=True,
        background="#1a1625",
        node_background="#2d2640",
        node_border="#a855f7",
        line_color="#a855f7",
        text_color="#f3e8ff",
        particle_color="#a855f7",
        cluster_border="#6b21a8",
        edge_label_background="#2d2640",
    ),
    "dark-green": Palette(
        name="Dark Green",
        is_dark=True,
        background="#0f1a14",
        node_background="#1a2e23",
        node_border="#22c55e",
        line_color="#22c55e",
        text_color="#dcfce7",
        particle_color="#22c55e",
        cluster_border="#166534",
        edge_label_background="#1a2e23",
    ),
    "light-blue": Palette(
        name="Light Blue",
        is_dark=False,
        background="#ffffff",
        node_background="#f0f9ff",
        node_border="#3b82f6",
        line_color="#3b82f6",
        text_color="#1e3a5f",
        particle_color="#3b82f6",
        cluster_border="#93c5fd",
        edge_label_background="#f0f9ff",
    ),
    "light-purple": Palette(
        name="Light Purple",
        is_dark=False,
        background="#faf5ff",
        node_background="#f3e8ff",
        node_border="#9333ea",
        line_color="#9333ea",
        text_color="#581c87",
        particle_color="#9333ea",
        cluster_border="#d8b4fe",
        edge_label_background="#f3e8ff",
    ),
    "light-rose": Palette(
        name="Light Rose",
        is_dark=False,
        background="#fff1f2",
        node_background="#ffe4e6",
        node_border="#e11d48",
        line_color="#e11d48",
        text_color="#881337",
        particle_color="#e11d48",
        cluster_border="#fda4af",
        edge_label_background="#ffe4e6",
    ),
}


def get_theme(theme_id: str) -> Palette:
    try:
        return THEMES[theme_id]
    except KeyError:
        raise UnknownThemeError(theme_id) from None


def list_themes() -> List[Dict[str, object]]:
    """Theme ids with their display metadata, in registry order."""
    return [{"id": key, **palette.model_dump()} for key, palette in THEMES.items()]
