"""
Normal map synthesis.

A tangent-space normal map is derived from the luma of a buffer used as a
height field:

1. height ``h = 0.299 R + 0.587 G + 0.114 B`` in [0, 1], or ``1 - h``;
2. optional separable Gaussian blur, ``sigma = blur_radius / 3``;
3. gradients ``gx``, ``gy`` from a 3x3 operator with clamp-to-edge taps;
4. the normal ``(-gx k, -gy k, 1)`` normalized, ``k = strength * detail_scale``;
5. each component mapped from [-1, 1] to [0, 255]; R=X, G=Y, B=Z, A=255.

Example::

    from skin_tools.filters.normal import NormalMapSettings, generate_normal_map

    normals = generate_normal_map(buffer, NormalMapSettings(strength=4))
"""

import logging
from typing import Any, Mapping, Union

import numpy as np
from attrs import define, field

from skin_tools.api.buffer import PixelBuffer
from skin_tools.api.serialization import structure
from skin_tools.constants import NormalMethod
from skin_tools.filters import kernels
from skin_tools.validators import clamp, enum_of

logger = logging.getLogger(__name__)

LUMA = np.array([0.299, 0.587, 0.114], dtype=np.float64)


@define(frozen=True)
class NormalMapSettings:
    """
    Normal map parameters; editor names are ``strength``, ``blurRadius``,
    ``invert``, ``detailScale`` and ``method``.
    """

    strength: float = field(default=2.0, converter=clamp(0.0, 100.0))
    blur_radius: float = field(default=1.0, converter=clamp(0.0, 100.0))
    invert: bool = field(default=False, converter=bool)
    detail_scale: float = field(default=1.0, converter=clamp(0.0, 100.0))
    method: NormalMethod = field(
        default=NormalMethod.SOBEL,
        converter=enum_of(NormalMethod, NormalMethod.SOBEL),
    )


Settings = Union[NormalMapSettings, Mapping[str, Any], None]


def _settings(settings: Settings) -> NormalMapSettings:
    if settings is None:
        return NormalMapSettings()
    if isinstance(settings, NormalMapSettings):
        return settings
    return structure(NormalMapSettings, settings)


def height_field(buffer: PixelBuffer, invert: bool = False) -> np.ndarray:
    """Luma of the buffer as float64 ``(h, w)`` in [0, 1]."""
    height = buffer.array[:, :, :3].astype(np.float64) @ LUMA / 255.0
    return 1.0 - height if invert else height


def compute_normals(buffer: PixelBuffer, settings: Settings = None) -> np.ndarray:
    """
    Unit normal field of a buffer.

    :return: float32 array ``(h, w, 3)`` of unit vectors with ``z > 0``.
    """
    return _unit_normals(buffer, _settings(settings)).astype(np.float32)


def _unit_normals(buffer: PixelBuffer, settings: NormalMapSettings) -> np.ndarray:
    height = height_field(buffer, settings.invert)
    if settings.blur_radius > 0:
        height = kernels.gaussian_blur(height, settings.blur_radius)

    kernel_x, kernel_y = kernels.GRADIENT_KERNELS[settings.method]
    gx = kernels.correlate(height, kernel_x)
    gy = kernels.correlate(height, kernel_y)

    k = settings.strength * settings.detail_scale
    normals = np.stack((-gx * k, -gy * k, np.ones_like(height)), axis=2)
    normals /= np.linalg.norm(normals, axis=2, keepdims=True)
    return normals


def generate_normal_map(buffer: PixelBuffer, settings: Settings = None) -> PixelBuffer:
    """
    Generate a normal map of the same size as ``buffer``.

    :param settings: :py:class:`NormalMapSettings` or a dict of them.
    :return: opaque :py:class:`~skin_tools.api.buffer.PixelBuffer`.
    """
    settings = _settings(settings)
    logger.debug("Generating %s normal map at %dx%d" % (settings.method.value, *buffer.size))
    normals = _unit_normals(buffer, settings)
    return PixelBuffer.fromarray(normals * 0.5 + 0.5)


def decode_normal_map(buffer: PixelBuffer, normalize: bool = True) -> np.ndarray:
    """
    Inverse of the 8-bit encoding.

    :return: float32 ``(h, w, 3)`` vectors; re-normalized unless
        ``normalize`` is false.
    """
    normals = buffer.array[:, :, :3].astype(np.float64) / 255.0 * 2.0 - 1.0
    if normalize:
        length = np.linalg.norm(normals, axis=2, keepdims=True)
        normals = np.divide(normals, length, out=np.zeros_like(normals), where=length > 0)
    return normals.astype(np.float32)
