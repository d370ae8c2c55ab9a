"""Export options, frames and results."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mermaid_motion.themes import DEFAULT_THEME_ID

AnimationType = Literal["dash", "particle", "both"]
Look = Literal["classic", "decorative"]

PNG_MIME_TYPE = "image/png"

# The preview player runs one particle lap in 2s at speed 1.
BASE_LOOP_SECONDS = 2.0


class ExportOptions(BaseModel):
    """Animation parameters for one export call.

    Field names accept the camelCase spellings used by the preview UI
    (``animationType``, ``themeId``, ``backgroundColorOverride``).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    fps: int = Field(default=24, gt=0)
    duration: float = Field(default=2.0, gt=0)
    scale: Literal[1, 2, 3] = 1
    animation_type: AnimationType = Field(default="both", alias="animationType")
    theme_id: str = Field(default=DEFAULT_THEME_ID, alias="themeId")
    look: Look = "classic"
    transparent: bool = False
    background_color_override: Optional[str] = Field(default=None, alias="backgroundColorOverride")
    quality: Optional[int] = None

    @field_validator("background_color_override")
    @classmethod
    def _blank_override_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _at_least_one_frame(self) -> "ExportOptions":
        if self.total_frames < 1:
            raise ValueError(
                f"fps={self.fps} and duration={self.duration} give no frames; fps * duration must round to at least 1"
            )
        return self

    @classmethod
    def for_playback_speed(cls, speed: float, fps: int = 30, **overrides) -> "ExportOptions":
        """Options that capture one preview loop at the given playback speed."""
        if speed <= 0:
            raise ValueError("speed must be positive")
        return cls(fps=fps, duration=BASE_LOOP_SECONDS / speed, **overrides)

    @property
    def total_frames(self) -> int:
        return js_round(self.fps * self.duration)

    @property
    def frame_delay_ms(self) -> float:
        return 1000.0 / self.fps

    @property
    def shows_dash(self) -> bool:
        return self.animation_type in ("dash", "both")

    @property
    def shows_particles(self) -> bool:
        return self.animation_type in ("particle", "both")


def js_round(value: float) -> int:
    """Round half up, the way browsers round canvas sizes."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Frame:
    pixels: bytes
    delay_ms: float


@dataclass(frozen=True)
class ExportResult:
    data: bytes
    filename: str
    width: int
    height: int
    frame_count: int
    mime_type: str = PNG_MIME_TYPE
