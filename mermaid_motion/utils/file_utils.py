"""File utilities."""
from __future__ import annotations

from pathlib import Path

# Raster formats a user might hand the CLI instead of the SVG they rendered.
_RASTER_SIGNATURES = (b"\x89PNG", b"\xff\xd8\xff", b"GIF8", b"RIFF")


def ensure_dir(path: str) -> Path:
    """Ensure directory exists and return Path."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def read_text_file(path: str) -> str:
    """Read an SVG source as UTF-8 text.

    Raises FileNotFoundError for a missing path and ValueError for raster
    images or text that is not valid UTF-8.
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Missing file: {path}")
    data = p.read_bytes()
    if data.startswith(_RASTER_SIGNATURES) or b"\x00" in data[:512]:
        raise ValueError(f"{p.name} is a binary image, not SVG text")
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValueError(f"{p.name} is not UTF-8 text: {exc}") from exc


def write_bytes_file(directory: str, filename: str, data: bytes) -> Path:
    """Write ``data`` under ``directory`` (created on demand) and return the path."""
    output_path = ensure_dir(directory) / filename
    output_path.write_bytes(data)
    return output_path
