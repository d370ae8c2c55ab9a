"""Assemble RGBA frames into an APNG.

Every frame is written as a full-canvas truecolor+alpha PNG and appended to
the container as-is, so identical neighbouring frames are kept and the frame
count always equals the number of buffers passed in.
"""
from __future__ import annotations

import io
import logging
from fractions import Fraction
from typing import Optional, Sequence

from apng import APNG
from PIL import Image

from mermaid_motion.export.errors import FrameSequenceError

logger = logging.getLogger(__name__)

# APNG frame delays are 16-bit fractions of a second.
_MAX_DELAY_DENOMINATOR = 0xFFFF
LOOP_FOREVER = 0
# Full-canvas frames replace the previous frame instead of compositing over it.
BLEND_OP_SOURCE = 0


def _delay_fraction(delay_ms: float) -> Fraction:
    return Fraction(delay_ms / 1000.0).limit_denominator(_MAX_DELAY_DENOMINATOR)


def _png_bytes(pixels: bytes, width: int, height: int) -> bytes:
    image = Image.frombytes("RGBA", (width, height), pixels)
    buf = io.BytesIO()
    # No palette conversion, no optimize pass: RGBA in, RGBA out.
    image.save(buf, format="PNG", compress_level=6)
    return buf.getvalue()


def check_frame_sequence(frames: Sequence[bytes], width: int, height: int, delays: Sequence[float]) -> None:
    if not frames:
        raise FrameSequenceError("No frames to encode")
    if len(frames) != len(delays):
        raise FrameSequenceError(f"{len(frames)} frames but {len(delays)} delays")
    expected = width * height * 4
    for index, pixels in enumerate(frames):
        if len(pixels) != expected:
            raise FrameSequenceError(
                f"Frame {index} holds {len(pixels)} bytes; a {width}x{height} RGBA frame needs {expected}"
            )


def encode_apng(
    frames: Sequence[bytes],
    width: int,
    height: int,
    delays: Sequence[float],
    quality: Optional[int] = None,
) -> bytes:
    """Encode ordered RGBA buffers with per-frame delays (milliseconds).

    ``quality`` is accepted for interface compatibility and ignored: output is
    always lossless.
    """
    check_frame_sequence(frames, width, height, delays)
    if quality is not None:
        logger.debug(f"Ignoring quality={quality}; APNG export is always lossless")

    animation = APNG(num_plays=LOOP_FOREVER)
    for pixels, delay_ms in zip(frames, delays):
        delay = _delay_fraction(delay_ms)
        animation.append_file(
            io.BytesIO(_png_bytes(pixels, width, height)),
            delay=delay.numerator,
            delay_den=delay.denominator,
            blend_op=BLEND_OP_SOURCE,
        )
    data = animation.to_bytes()
    logger.info(f"Encoded {len(frames)} frames at {width}x{height} into {len(data)} bytes")
    return data
