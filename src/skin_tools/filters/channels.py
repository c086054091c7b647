"""
Channel packing and material map helpers.

Game material maps are often packed: one grayscale map per channel of a
single texture. :py:func:`combine` builds such a texture from up to three
grayscale sources; the other helpers derive grayscale sources.
"""

import logging
from typing import Optional, Union

import numpy as np

from skin_tools.api import pil_io
from skin_tools.api.buffer import PixelBuffer, check_size
from skin_tools.constants import Channel
from skin_tools.filters.image import to_bytes
from skin_tools.validators import clamp, finite

logger = logging.getLogger(__name__)


def _red(source: Optional[PixelBuffer], width: int, height: int) -> np.ndarray:
    if source is None:
        return np.zeros((height, width), dtype=np.uint8)
    if source.size != (width, height):
        source = pil_io.resize(source, width, height)
    return source.array[:, :, 0]


def combine(
    red: Optional[PixelBuffer],
    green: Optional[PixelBuffer],
    blue: Optional[PixelBuffer],
    width: int,
    height: int,
) -> PixelBuffer:
    """
    Pack the red channel of each source into one opaque buffer.

    Sources of another size are resized to ``width`` x ``height``; a missing
    source leaves its channel at 0.
    """
    width, height = check_size(width, height)
    planes = [_red(source, width, height) for source in (red, green, blue)]
    planes.append(np.full((height, width), 255, dtype=np.uint8))
    return PixelBuffer.fromarray(np.stack(planes, axis=2))


def extract_channel(buffer: PixelBuffer, channel: Union[Channel, str]) -> PixelBuffer:
    """Opaque grayscale copy of one channel."""
    channel = Channel(channel[:1].lower() if isinstance(channel, str) else channel)
    plane = buffer.array[:, :, channel.index]
    return PixelBuffer.fromarray(plane[:, :, np.newaxis])


def to_grayscale(
    buffer: PixelBuffer,
    invert: bool = False,
    contrast: float = 1.0,
    brightness: float = 0.0,
) -> PixelBuffer:
    """
    Luma grayscale, e.g. as a roughness source.

    ``contrast`` scales around mid gray and ``brightness`` is added in the
    0-255 range before ``invert``. Alpha is kept.
    """
    contrast = clamp(0.0)(contrast)
    brightness = finite(brightness)
    gray = buffer.array[:, :, :3].astype(np.float64) @ np.array([0.299, 0.587, 0.114])
    gray = np.clip((gray - 128.0) * contrast + 128.0 + brightness, 0.0, 255.0)
    if invert:
        gray = 255.0 - gray
    gray = to_bytes(gray)
    return PixelBuffer.fromarray(
        np.stack((gray, gray, gray, buffer.array[:, :, 3]), axis=2)
    )


def metalness_map(buffer: PixelBuffer, factor: float = 1.0) -> PixelBuffer:
    """
    Estimate metalness as ``luminance * (1 - 0.5 * saturation) * factor``.

    Bright, unsaturated areas read as metal. The result is opaque grayscale.
    """
    factor = clamp(0.0)(factor)
    color = buffer.numpy("color").astype(np.float64)
    luminance = np.mean(color, axis=2)
    c_max, c_min = np.max(color, axis=2), np.min(color, axis=2)
    saturation = np.divide(
        c_max - c_min, c_max, out=np.zeros_like(c_max), where=c_max > 0
    )
    value = np.clip(luminance * (1.0 - 0.5 * saturation) * factor, 0.0, 1.0)
    return PixelBuffer.fromarray(value[:, :, np.newaxis])
