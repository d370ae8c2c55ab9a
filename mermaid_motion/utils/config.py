"""Application configuration.

Values come from environment variables and an optional ``.env`` file. Export
defaults here only seed the CLI; library callers pass ``ExportOptions``.
"""
from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from .env and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    default_fps: int = 24
    default_duration: float = 2.0
    default_scale: int = 1
    default_theme: str = "dark-cyan"
    decorative_font_path: str = Field(
        default="",
        validation_alias=AliasChoices("DECORATIVE_FONT_PATH", "MERMAID_MOTION_FONT"),
    )
    output_dir: str = "outputs"
    log_level: str = "INFO"


settings = Settings()
