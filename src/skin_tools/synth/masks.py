"""
Smart masks.

Procedural grayscale masks that are regenerated from parameters instead of
painted. White keeps layer content, black hides it. Field names follow the
editor's parameter names, e.g. ``cornerRadius`` or ``vignetteStrength``.

Example::

    from skin_tools.synth.masks import generate_mask

    mask = generate_mask('vignette', {'vignetteStrength': 0.8}, 512, 512)
    layer = attrs.evolve(layer, mask=Mask(mask))
"""

import logging
import math
from typing import Any, ClassVar, Mapping, Optional, Union

import numpy as np
from attrs import define, field

from skin_tools.api.buffer import PixelBuffer, check_size
from skin_tools.api.serialization import structure
from skin_tools.composite import paint
from skin_tools.constants import GradientType, MaskType, NoiseMode, PatternType
from skin_tools.exceptions import UnsupportedParameterCombination
from skin_tools.registry import new_registry
from skin_tools.synth import noise
from skin_tools.synth.generators import pattern_index
from skin_tools.validators import clamp, clamp_int, enum_of, integer

logger = logging.getLogger(__name__)

MASKS, register = new_registry(attribute="mask_type")

# Editor names of the same masks.
_ALIASES = {"noise-mask": "noise", "pattern-mask": "pattern"}


def _centers(width: int, height: int):
    Y, X = np.mgrid[0:height, 0:width].astype(np.float64)
    return X + 0.5, Y + 0.5


def _smoothstep(t: np.ndarray) -> np.ndarray:
    t = np.clip(t, 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


@define
class MaskParams:
    """Base of smart mask parameters."""

    needs_source: ClassVar[bool] = False

    def render(
        self, width: int, height: int, source: Optional[PixelBuffer] = None
    ) -> np.ndarray:
        """Return mask values ``(h, w)`` in [0, 1]."""
        raise NotImplementedError


@register(MaskType.CORNER_RADIUS)
@define
class CornerRadiusParams(MaskParams):
    """Canvas-sized rounded rectangle; ``corner_smooth`` widens the edge."""

    corner_radius: float = field(default=64.0, converter=clamp(0.0))
    corner_smooth: float = field(default=0.5, converter=clamp(0.0, 1.0))

    def render(self, width, height, source=None):
        X, Y = _centers(width, height)
        half_w, half_h = width / 2.0, height / 2.0
        radius = min(self.corner_radius, half_w, half_h)
        qx = np.abs(X - half_w) - (half_w - radius)
        qy = np.abs(Y - half_h) - (half_h - radius)
        outside = np.hypot(np.maximum(qx, 0.0), np.maximum(qy, 0.0))
        distance = outside + np.minimum(np.maximum(qx, qy), 0.0) - radius
        feather = 1.0 + self.corner_smooth * radius / 4.0
        return np.clip(0.5 - distance / feather, 0.0, 1.0)


@register(MaskType.BORDER_GRADIENT)
@define
class BorderGradientParams(MaskParams):
    """
    Fade to black towards the canvas edges.

    ``border_width`` pixels from the edge (after ``border_offset``) the mask
    reaches white. ``border_softness`` 1 is a linear ramp, 0 a hard step.
    """

    border_width: float = field(default=32.0, converter=clamp(0.0))
    border_softness: float = field(default=1.0, converter=clamp(0.0, 1.0))
    border_offset: float = field(default=0.0, converter=clamp(-10000.0, 10000.0))

    def render(self, width, height, source=None):
        X, Y = _centers(width, height)
        edge = np.minimum(np.minimum(X, width - X), np.minimum(Y, height - Y))
        edge = edge - self.border_offset
        ramp = max(self.border_width * self.border_softness, 1e-6)
        start = self.border_width * (1.0 - self.border_softness)
        return np.clip((edge - start) / ramp, 0.0, 1.0)


@register(MaskType.VIGNETTE)
@define
class VignetteParams(MaskParams):
    """Darken towards the corners; radii are fractions of the half diagonal."""

    vignette_strength: float = field(default=0.5, converter=clamp(0.0, 1.0))
    vignette_radius: float = field(default=0.7, converter=clamp(0.0, 2.0))
    vignette_softness: float = field(default=0.3, converter=clamp(0.0, 2.0))

    def render(self, width, height, source=None):
        X, Y = _centers(width, height)
        half_diagonal = math.hypot(width / 2.0, height / 2.0)
        r = np.hypot(X - width / 2.0, Y - height / 2.0) / half_diagonal
        t = (r - self.vignette_radius) / max(self.vignette_softness, 1e-6)
        return 1.0 - self.vignette_strength * _smoothstep(t)


@register(MaskType.RADIAL_GRADIENT)
@define
class RadialGradientParams(MaskParams):
    """White center fading out radially."""

    reverse: bool = field(default=False, converter=bool)

    def render(self, width, height, source=None):
        Z = 1.0 - paint.gradient_index(GradientType.RADIAL, width, height)
        return 1.0 - Z if self.reverse else Z


@register(MaskType.LINEAR_GRADIENT)
@define
class LinearGradientParams(MaskParams):
    gradient_angle: float = field(default=0.0, converter=clamp(-360.0, 360.0))
    reverse: bool = field(default=False, converter=bool)

    def render(self, width, height, source=None):
        Z = paint.gradient_index(
            GradientType.LINEAR, width, height, self.gradient_angle
        )
        return 1.0 - Z if self.reverse else Z


@register(MaskType.NOISE)
@define
class NoiseMaskParams(MaskParams):
    noise_scale: float = field(default=50.0, converter=clamp(0.01))
    noise_octaves: int = field(default=4, converter=clamp_int(1, 16))
    noise_persistence: float = field(default=0.5, converter=clamp(0.0, 1.0))
    noise_seed: int = field(default=12345, converter=integer)

    def render(self, width, height, source=None):
        state = noise.seed(self.noise_seed)
        Y, X = np.mgrid[0:height, 0:width].astype(np.float64)
        value = noise.fractal_sum(
            state,
            X / self.noise_scale,
            Y / self.noise_scale,
            octaves=self.noise_octaves,
            persistence=self.noise_persistence,
            mode=NoiseMode.FBM,
        )
        return np.clip((value + 1.0) / 2.0, 0.0, 1.0)


@register(MaskType.PATTERN)
@define
class PatternMaskParams(MaskParams):
    """Two tone pattern rotated ``pattern_rotation`` degrees about the center."""

    pattern_type: PatternType = field(
        default=PatternType.CHECKER,
        converter=enum_of(PatternType, PatternType.CHECKER),
    )
    pattern_scale: float = field(default=20.0, converter=clamp(1.0))
    pattern_rotation: float = field(default=0.0, converter=clamp(-360.0, 360.0))

    def render(self, width, height, source=None):
        X, Y = _centers(width, height)
        theta = math.radians(self.pattern_rotation)
        dx, dy = X - width / 2.0, Y - height / 2.0
        U = math.cos(theta) * dx + math.sin(theta) * dy + width / 2.0
        V = -math.sin(theta) * dx + math.cos(theta) * dy + height / 2.0
        index = pattern_index(self.pattern_type, U, V, self.pattern_scale)
        return 1.0 - index.astype(np.float64)


@register(MaskType.EDGE_DETECT)
@define
class EdgeDetectParams(MaskParams):
    """Edges of the source alpha, grown by ``edge_width`` pixels."""

    needs_source: ClassVar[bool] = True

    edge_width: int = field(default=2, converter=clamp_int(0, 256))

    def render(self, width, height, source=None):
        from skimage import filters
        from skimage.morphology import dilation, disk

        edges = filters.scharr(source.numpy("alpha")[:, :, 0].astype(np.float64))
        peak = float(np.max(edges))
        if peak < 1e-6:
            return np.zeros((height, width))
        edges = edges / peak
        if self.edge_width > 0:
            edges = dilation(edges, disk(self.edge_width))
        return np.clip(edges, 0.0, 1.0)


@register(MaskType.DISTANCE_FIELD)
@define
class DistanceFieldParams(MaskParams):
    """
    Euclidean distance from the transparent pixels of the source.

    Distances are divided by ``max_distance``, or by the largest distance
    when it is 0.
    """

    needs_source: ClassVar[bool] = True

    max_distance: float = field(default=0.0, converter=clamp(0.0))

    def render(self, width, height, source=None):
        from scipy import ndimage  # type: ignore[import-untyped]

        inside = source.numpy("alpha")[:, :, 0] >= 0.5
        distance = ndimage.distance_transform_edt(inside)
        scale = self.max_distance or float(np.max(distance))
        if scale <= 0:
            return np.zeros((height, width))
        return np.clip(distance / scale, 0.0, 1.0)


def make_mask_params(
    mask_type: Union[MaskType, str],
    params: Union[MaskParams, Mapping[str, Any], None] = None,
) -> MaskParams:
    """Build the typed parameters of a smart mask from a dict."""
    try:
        mask_type = MaskType(_ALIASES.get(mask_type, mask_type))
    except ValueError as e:
        raise UnsupportedParameterCombination(
            "Unknown mask type: %r" % (mask_type,)
        ) from e
    kind = MASKS[mask_type]
    if params is None:
        return kind()
    if isinstance(params, MaskParams):
        if not isinstance(params, kind):
            raise UnsupportedParameterCombination(
                "%s cannot render %s" % (type(params).__name__, mask_type.value)
            )
        return params
    return structure(kind, params)


def generate_mask(
    mask_type: Union[MaskType, str],
    params: Union[MaskParams, Mapping[str, Any], None],
    width: int,
    height: int,
    source: Optional[PixelBuffer] = None,
) -> PixelBuffer:
    """
    Render a smart mask as an opaque grayscale buffer.

    :param source: layer pixels for ``edge-detect`` and ``distance-field``;
        resized to the mask size when needed.
    :raise UnsupportedParameterCombination: the mask type needs a source and
        none was given.
    """
    width, height = check_size(width, height)
    typed = make_mask_params(mask_type, params)
    if typed.needs_source:
        if source is None:
            raise UnsupportedParameterCombination(
                "%s mask requires a source buffer" % typed.mask_type.value
            )
        if source.size != (width, height):
            from skin_tools.api import pil_io

            source = pil_io.resize(source, width, height)
    logger.debug("Generating %s mask at %dx%d" % (typed.mask_type.value, width, height))
    value = typed.render(width, height, source)
    return PixelBuffer.fromarray(np.asarray(value, dtype=np.float32))
