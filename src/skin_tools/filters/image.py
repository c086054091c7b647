"""
Image filters.

Every filter is an attrs parameter class registered in :py:data:`FILTERS`.
Filters work on float RGBA values in the 0-255 range and never modify their
input; kernel filters sample an unmodified copy and clamp taps to the
nearest edge pixel. Alpha is preserved by every filter except ``blur``.

Example::

    from skin_tools.filters import apply_filter

    poster = apply_filter(buffer, 'posterize', levels=3)
"""

import logging
from typing import Any, Mapping, Union

import numpy as np
from attrs import define, field

from skin_tools.api.buffer import PixelBuffer
from skin_tools.api.serialization import structure
from skin_tools.constants import FilterKind
from skin_tools.exceptions import UnsupportedParameterCombination
from skin_tools.filters import kernels
from skin_tools.registry import new_registry
from skin_tools.validators import clamp, clamp_int, integer

logger = logging.getLogger(__name__)

FILTERS, register = new_registry(attribute="kind")

SEPIA = np.array(
    [
        [0.393, 0.769, 0.189],
        [0.349, 0.686, 0.168],
        [0.272, 0.534, 0.131],
    ],
    dtype=np.float64,
)


def to_bytes(values: np.ndarray) -> np.ndarray:
    """Round half up and clamp 0-255 values to ``uint8``."""
    return np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)


def _gray(rgba: np.ndarray) -> np.ndarray:
    return np.mean(rgba[:, :, :3], axis=2)


@define
class FilterParams:
    """Base of filter parameters."""

    def apply(self, rgba: np.ndarray) -> np.ndarray:
        """Return filtered float RGBA ``(h, w, 4)`` in the 0-255 range."""
        raise NotImplementedError


@register(FilterKind.INVERT)
@define
class Invert(FilterParams):
    def apply(self, rgba):
        result = rgba.copy()
        result[:, :, :3] = 255.0 - rgba[:, :, :3]
        return result


@register(FilterKind.POSTERIZE)
@define
class Posterize(FilterParams):
    """Quantize each color channel to ``levels`` evenly spaced values."""

    levels: int = field(default=4, converter=clamp_int(2, 256))

    def apply(self, rgba):
        step = 255.0 / (self.levels - 1)
        result = rgba.copy()
        result[:, :, :3] = np.floor(np.floor(rgba[:, :, :3] / step + 0.5) * step + 0.5)
        return result


@register(FilterKind.THRESHOLD)
@define
class Threshold(FilterParams):
    level: float = field(default=128.0, converter=clamp(0.0, 255.0))

    def apply(self, rgba):
        value = np.where(_gray(rgba) >= self.level, 255.0, 0.0)
        result = rgba.copy()
        result[:, :, :3] = value[:, :, np.newaxis]
        return result


@register(FilterKind.SEPIA)
@define
class Sepia(FilterParams):
    intensity: float = field(default=1.0, converter=clamp(0.0, 1.0))

    def apply(self, rgba):
        color = rgba[:, :, :3]
        toned = np.minimum(255.0, color @ SEPIA.T)
        result = rgba.copy()
        result[:, :, :3] = color + (toned - color) * self.intensity
        return result


@register(FilterKind.NOISE)
@define
class Noise(FilterParams):
    """Uniform noise in ``[-amount, amount]``, shared by the color channels."""

    amount: float = field(default=30.0, converter=clamp(0.0, 255.0))
    seed: int = field(default=0, converter=integer)

    def apply(self, rgba):
        rng = np.random.RandomState(self.seed & 0xFFFFFFFF)
        offset = (rng.random_sample(rgba.shape[:2]) - 0.5) * self.amount * 2.0
        result = rgba.copy()
        result[:, :, :3] = np.clip(rgba[:, :, :3] + offset[:, :, np.newaxis], 0, 255)
        return result


@register(FilterKind.PIXELATE)
@define
class Pixelate(FilterParams):
    """Fill each block with the mean color of its in-bounds pixels."""

    size: int = field(default=8, converter=clamp_int(1, 4096))

    def apply(self, rgba):
        result = rgba.copy()
        height, width = rgba.shape[:2]
        for top in range(0, height, self.size):
            for left in range(0, width, self.size):
                block = rgba[top : top + self.size, left : left + self.size, :3]
                mean = np.floor(np.mean(block, axis=(0, 1)) + 0.5)
                result[top : top + self.size, left : left + self.size, :3] = mean
        return result


@register(FilterKind.EDGE)
@define
class Edge(FilterParams):
    """Sobel gradient magnitude of the channel mean, capped at 255."""

    def apply(self, rgba):
        gray = _gray(rgba)
        gx = kernels.correlate(gray, kernels.SOBEL_X)
        gy = kernels.correlate(gray, kernels.SOBEL_Y)
        magnitude = np.minimum(255.0, np.hypot(gx, gy))
        result = rgba.copy()
        result[:, :, :3] = magnitude[:, :, np.newaxis]
        return result


@register(FilterKind.EMBOSS)
@define
class Emboss(FilterParams):
    strength: float = field(default=1.0, converter=clamp(0.0, 100.0))

    def apply(self, rgba):
        kernel = kernels.EMBOSS * self.strength
        result = rgba.copy()
        for i in range(3):
            result[:, :, i] = np.clip(kernels.correlate(rgba[:, :, i], kernel) + 128, 0, 255)
        return result


@register(FilterKind.BLUR)
@define
class Blur(FilterParams):
    """Separable Gaussian blur of premultiplied pixels."""

    radius: float = field(default=2.0, converter=clamp(0.0, 250.0))

    def apply(self, rgba):
        if self.radius <= 0:
            return rgba.copy()
        alpha = rgba[:, :, 3:4] / 255.0
        premultiplied = np.concatenate((rgba[:, :, :3] * alpha, rgba[:, :, 3:4]), axis=2)
        blurred = kernels.gaussian_blur(premultiplied, self.radius)
        alpha = blurred[:, :, 3:4] / 255.0
        with np.errstate(divide="ignore", invalid="ignore"):
            color = np.where(alpha > 0, blurred[:, :, :3] / alpha, 0.0)
        return np.concatenate((np.clip(color, 0, 255), blurred[:, :, 3:4]), axis=2)


def make_filter(
    kind: Union[FilterKind, str],
    params: Union[FilterParams, Mapping[str, Any], None] = None,
) -> FilterParams:
    """Build the typed parameters of a filter from a dict."""
    try:
        kind = FilterKind(kind)
    except ValueError as e:
        raise UnsupportedParameterCombination("Unknown filter: %r" % (kind,)) from e
    cls = FILTERS[kind]
    if params is None:
        return cls()
    if isinstance(params, FilterParams):
        if not isinstance(params, cls):
            raise UnsupportedParameterCombination(
                "%s cannot apply %s" % (type(params).__name__, kind.value)
            )
        return params
    return structure(cls, params)


def apply_filter(
    buffer: PixelBuffer,
    kind: Union[FilterKind, str],
    params: Union[FilterParams, Mapping[str, Any], None] = None,
    **kwargs: Any,
) -> PixelBuffer:
    """
    Apply an image filter.

    :param buffer: source :py:class:`~skin_tools.api.buffer.PixelBuffer`.
    :param kind: :py:class:`~skin_tools.constants.FilterKind` or its name.
    :param params: typed parameters or a dict; keyword arguments are merged
        into a dict.
    :return: a new buffer of the same size.
    """
    if kwargs:
        if isinstance(params, FilterParams):
            raise UnsupportedParameterCombination(
                "Keyword parameters cannot extend typed filter parameters"
            )
        params = dict(params or {}, **kwargs)
    typed = make_filter(kind, params)
    logger.debug("Applying %s filter to %dx%d" % (typed.kind.value, *buffer.size))
    rgba = buffer.array.astype(np.float64)
    return PixelBuffer.fromarray(to_bytes(typed.apply(rgba)))
