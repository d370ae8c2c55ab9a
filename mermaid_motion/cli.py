"""CLI interface."""
from __future__ import annotations

import json
import logging
from typing import Optional

import typer

from mermaid_motion.animation.injector import inject_animations
from mermaid_motion.export.errors import ExportError
from mermaid_motion.export.glyphs import FontCache
from mermaid_motion.export.models import ExportOptions
from mermaid_motion.export.orchestrator import AnimationExporter, export_animation_sync
from mermaid_motion.themes import THEMES, UnknownThemeError, list_themes
from mermaid_motion.utils.config import settings
from mermaid_motion.utils.file_utils import read_text_file, write_bytes_file

app = typer.Typer(add_completion=False)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def export(
    svg_file: str = typer.Argument(..., help="Rendered Mermaid SVG to export."),
    out_dir: str = typer.Option(settings.output_dir, "--out-dir", "-o", help="Directory for the APNG."),
    fps: int = typer.Option(settings.default_fps, "--fps", min=1),
    duration: Optional[float] = typer.Option(None, "--duration", help="Seconds of motion (overrides --speed)."),
    speed: Optional[float] = typer.Option(None, "--speed", help="Preview playback speed; duration becomes 2/speed."),
    scale: int = typer.Option(settings.default_scale, "--scale", min=1, max=3),
    animation: str = typer.Option("both", "--animation", help="dash, particle or both."),
    theme: str = typer.Option(settings.default_theme, "--theme"),
    look: str = typer.Option("classic", "--look", help="classic or decorative."),
    transparent: bool = typer.Option(False, "--transparent"),
    background: Optional[str] = typer.Option(None, "--background", help="Background color override."),
    font: Optional[str] = typer.Option(None, "--font", help="Decorative font file (TTF/OTF)."),
    inject: bool = typer.Option(True, "--inject/--no-inject", help="Inject flow animations before exporting."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Export an SVG diagram as an animated PNG."""
    _configure_logging(verbose)
    if theme not in THEMES:
        raise typer.BadParameter(str(UnknownThemeError(theme)), param_hint="--theme")

    fields = dict(
        scale=scale,
        animation_type=animation,
        theme_id=theme,
        look=look,
        transparent=transparent,
        background_color_override=background,
    )
    try:
        if duration is None and speed is not None:
            options = ExportOptions.for_playback_speed(speed, fps=fps, **fields)
        else:
            options = ExportOptions(fps=fps, duration=duration or settings.default_duration, **fields)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))

    try:
        svg_text = read_text_file(svg_file)
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="SVG_FILE")
    if inject:
        svg_text = inject_animations(svg_text, options.animation_type, speed or 1.0)

    exporter = AnimationExporter(font_cache=FontCache(font or settings.decorative_font_path or None))
    try:
        result = export_animation_sync(svg_text, options, exporter=exporter)
    except ExportError as exc:
        typer.echo(f"Export failed: {exc}", err=True)
        raise typer.Exit(code=1)

    path = write_bytes_file(out_dir, result.filename, result.data)
    typer.echo(
        json.dumps(
            {
                "path": str(path),
                "mime_type": result.mime_type,
                "width": result.width,
                "height": result.height,
                "frames": result.frame_count,
            },
            indent=2,
        )
    )


@app.command()
def themes():
    """List available color themes."""
    typer.echo(json.dumps(list_themes(), indent=2))


if __name__ == "__main__":
    app()
