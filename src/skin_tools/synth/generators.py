"""
Procedural texture generators.

Every generator type has an attrs parameter class registered in
:py:data:`GENERATORS`. Numeric fields are clamped by converters, so any
parameter set coming from the editor renders something sensible.

Dense families (noise, clouds, plasma, marble, wood, metal, fabric, leather,
concrete, gradient, pattern) fill every pixel. Sparse families (rust, dirt,
grunge, scratches, splatter) are overlays: pixels outside the generated
features stay fully transparent.

Example::

    from skin_tools.synth.generators import generate

    buffer = generate('marble', {'scale': 40, 'seed': 7}, 256, 256)
"""

import logging
import math
from typing import Any, Mapping, Tuple, Union

import numpy as np
from attrs import define, field

from skin_tools.api.buffer import PixelBuffer, check_size
from skin_tools.api.color import ColorRamp, parse_color, to_float, to_ramp
from skin_tools.api.serialization import structure
from skin_tools.composite import paint
from skin_tools.constants import (
    GeneratorType,
    GradientType,
    NoiseMode,
    NoiseType,
    PatternType,
    WeaveType,
)
from skin_tools.exceptions import UnsupportedParameterCombination
from skin_tools.registry import new_registry
from skin_tools.synth import noise
from skin_tools.validators import clamp, clamp_int, enum_of, integer

logger = logging.getLogger(__name__)

GENERATORS, register = new_registry(attribute="generator_type")

RenderResult = Tuple[np.ndarray, np.ndarray]


def _grid(width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
    Y, X = np.mgrid[0:height, 0:width]
    return X.astype(np.float64), Y.astype(np.float64)


def _opaque(width: int, height: int) -> np.ndarray:
    return np.ones((height, width, 1), dtype=np.float32)


def _adjust(value: np.ndarray, contrast: float, brightness: float) -> np.ndarray:
    return np.clip((value - 0.5) * contrast + 0.5 + brightness, 0.0, 1.0)


@define
class GeneratorParams:
    """Fields shared by all generators."""

    seed: int = field(default=12345, converter=integer)
    scale: float = field(default=50.0, converter=clamp(0.01))

    def render(self, width: int, height: int) -> RenderResult:
        """Return float color ``(h, w, 3)`` and alpha ``(h, w, 1)``."""
        raise NotImplementedError


@register(GeneratorType.NOISE)
@define
class NoiseParams(GeneratorParams):
    """Fractal noise mapped through a two color ramp."""

    octaves: int = field(default=4, converter=clamp_int(1, 16))
    persistence: float = field(default=0.5, converter=clamp(0.0, 1.0))
    lacunarity: float = field(default=2.0, converter=clamp(1.0, 8.0))
    contrast: float = field(default=1.0, converter=clamp(0.0, 10.0))
    brightness: float = field(default=0.0, converter=clamp(-1.0, 1.0))
    noise_type: NoiseType = field(
        default=NoiseType.FBM, converter=enum_of(NoiseType, NoiseType.FBM)
    )
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#000000", "#ffffff"]),
        converter=to_ramp,
    )

    def sample(self, state: noise.NoiseState, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        kind = self.noise_type
        if kind == NoiseType.PERLIN:
            return (noise.gradient_noise(state, x, y) + 1.0) * 0.5
        if kind == NoiseType.VALUE:
            return noise.value_fbm(
                state, x, y, self.octaves, self.persistence, self.lacunarity
            )
        value = noise.fractal_sum(
            state,
            x,
            y,
            self.octaves,
            self.persistence,
            self.lacunarity,
            NoiseMode(kind.value),
        )
        if kind == NoiseType.FBM:
            value = (value + 1.0) * 0.5
        return value

    def render(self, width, height):
        state = noise.seed(self.seed)
        X, Y = _grid(width, height)
        value = self.sample(state, X / self.scale, Y / self.scale)
        value = _adjust(value, self.contrast, self.brightness)
        return self.colors(value), _opaque(width, height)


@register(GeneratorType.CLOUDS)
@define
class CloudsParams(NoiseParams):
    """Soft value-noise clouds."""

    scale: float = field(default=80.0, converter=clamp(0.01))
    octaves: int = field(default=6, converter=clamp_int(1, 16))
    persistence: float = field(default=0.6, converter=clamp(0.0, 1.0))
    noise_type: NoiseType = field(
        default=NoiseType.VALUE, converter=enum_of(NoiseType, NoiseType.VALUE)
    )


@register(GeneratorType.PLASMA)
@define
class PlasmaParams(GeneratorParams):
    scale: float = field(default=30.0, converter=clamp(0.01))
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(
            ["#ff0000", "#00ff00", "#0000ff", "#ffff00"]
        ),
        converter=to_ramp,
    )

    def render(self, width, height):
        rng = noise.Random(self.seed)
        phases = [rng.uniform(0.0, 2.0 * math.pi) for _ in range(4)]
        X, Y = _grid(width, height)
        nx, ny = X / self.scale, Y / self.scale
        cx, cy = width / self.scale / 2.0, height / self.scale / 2.0
        value = (
            np.sin(nx + phases[0])
            + np.sin(ny * 1.3 + phases[1])
            + np.sin((nx + ny) * 0.7 + phases[2])
            + np.sin(np.sqrt((nx - cx) ** 2 + (ny - cy) ** 2) + phases[3])
            + 4.0
        ) / 8.0
        return self.colors(value), _opaque(width, height)


@register(GeneratorType.MARBLE)
@define
class MarbleParams(GeneratorParams):
    """Sine veins along x, warped by turbulence."""

    scale: float = field(default=40.0, converter=clamp(0.01))
    octaves: int = field(default=5, converter=clamp_int(1, 16))
    turbulence: float = field(default=5.0, converter=clamp(0.0, 50.0))
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#ffffff", "#888888", "#333333"]),
        converter=to_ramp,
    )

    def render(self, width, height):
        state = noise.seed(self.seed)
        X, Y = _grid(width, height)
        nx, ny = X / self.scale, Y / self.scale
        warp = noise.fractal_sum(state, nx, ny, self.octaves, 0.5, 2.0, NoiseMode.TURBULENCE)
        value = (np.sin((nx + ny * 0.5) * math.pi + self.turbulence * warp) + 1.0) * 0.5
        return self.colors(value), _opaque(width, height)


@register(GeneratorType.WOOD)
@define
class WoodParams(GeneratorParams):
    """Concentric rings around the center, warped by fbm."""

    scale: float = field(default=20.0, converter=clamp(0.01))
    rings: float = field(default=10.0, converter=clamp(0.0, 100.0))
    turbulence: float = field(default=0.3, converter=clamp(0.0, 10.0))
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#8b4513", "#654321", "#3d2817"]),
        converter=to_ramp,
    )

    def render(self, width, height):
        state = noise.seed(self.seed)
        X, Y = _grid(width, height)
        nx, ny = X / self.scale, Y / self.scale
        warp = noise.value_fbm(state, nx * 0.5, ny * 0.5, 3)
        cx, cy = width / self.scale / 2.0, height / self.scale / 2.0
        distance = np.sqrt((nx - cx) ** 2 + (ny - cy) ** 2)
        value = np.sin((distance + warp * self.turbulence) * self.rings) * 0.5 + 0.5
        return self.colors(value), _opaque(width, height)


@register(GeneratorType.METAL)
@define
class MetalParams(GeneratorParams):
    """Brushed metal: noise stretched along ``direction`` degrees."""

    scale: float = field(default=100.0, converter=clamp(0.01))
    direction: float = field(default=0.0, converter=clamp(-360.0, 360.0))
    strength: float = field(default=0.3, converter=clamp(0.0, 1.0))
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#c0c0c0", "#a0a0a0"]),
        converter=to_ramp,
    )

    def render(self, width, height):
        state = noise.seed(self.seed)
        theta = math.radians(self.direction)
        X, Y = _grid(width, height)
        along = X * math.cos(theta) + Y * math.sin(theta)
        across = -X * math.sin(theta) + Y * math.cos(theta)
        streaks = noise.value_fbm(state, along / self.scale, across / 1.5, 2)
        value = np.clip(0.5 + (streaks - 0.5) * 2.0 * self.strength, 0.0, 1.0)
        return self.colors(value), _opaque(width, height)


@register(GeneratorType.FABRIC)
@define
class FabricParams(GeneratorParams):
    """Woven cells, ``scale`` is the thread width in pixels."""

    scale: float = field(default=10.0, converter=clamp(1.0))
    weave_type: WeaveType = field(
        default=WeaveType.PLAIN, converter=enum_of(WeaveType, WeaveType.PLAIN)
    )
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#4a4a4a", "#3a3a3a"]),
        converter=to_ramp,
    )

    def render(self, width, height):
        state = noise.seed(self.seed)
        X, Y = _grid(width, height)
        ix = np.floor(X / self.scale).astype(np.int64)
        iy = np.floor(Y / self.scale).astype(np.int64)
        if self.weave_type == WeaveType.TWILL:
            cell = ((ix - iy) % 4 < 2).astype(np.float64)
        else:
            cell = ((ix + iy) % 2).astype(np.float64)
        grain = noise.value_fbm(state, X / self.scale * 2.0, Y / self.scale * 2.0, 2)
        color = self.colors(cell) * (1.0 + grain[:, :, np.newaxis] * 0.1)
        return np.clip(color, 0.0, 1.0).astype(np.float32), _opaque(width, height)


def _layered_fbm(seed: int, X, Y, scale: float, detail: float) -> np.ndarray:
    base = noise.value_fbm(noise.seed(seed), X / scale, Y / scale, 4, 0.5)
    fine = noise.value_fbm(noise.seed(seed + 100), X / scale * 3.0, Y / scale * 3.0, 2, 0.3)
    return np.clip(base * 0.7 + fine * 0.3 * detail, 0.0, 1.0)


@register(GeneratorType.LEATHER)
@define
class LeatherParams(GeneratorParams):
    scale: float = field(default=30.0, converter=clamp(0.01))
    bumpiness: float = field(default=0.5, converter=clamp(0.0, 1.0))
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#8b4513", "#654321"]),
        converter=to_ramp,
    )

    def render(self, width, height):
        X, Y = _grid(width, height)
        value = _layered_fbm(self.seed, X, Y, self.scale, self.bumpiness)
        return self.colors(value), _opaque(width, height)


@register(GeneratorType.CONCRETE)
@define
class ConcreteParams(GeneratorParams):
    scale: float = field(default=60.0, converter=clamp(0.01))
    roughness: float = field(default=0.7, converter=clamp(0.0, 1.0))
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#808080", "#707070", "#606060"]),
        converter=to_ramp,
    )

    def render(self, width, height):
        X, Y = _grid(width, height)
        value = _layered_fbm(self.seed, X, Y, self.scale, self.roughness)
        return self.colors(value), _opaque(width, height)


# Width of the alpha ramp at the edge of sparse coverage.
COVERAGE_EDGE = 0.02


def _coverage(seed: int, X, Y, scale: float, density: float, colors: ColorRamp):
    base = noise.value_fbm(noise.seed(seed), X / scale, Y / scale, 5, 0.6)
    detail = noise.value_fbm(noise.seed(seed + 50), X / scale * 2.0, Y / scale * 2.0, 3, 0.4)
    value = base * detail
    threshold = 1.0 - density
    if threshold >= 1.0:
        height, width = X.shape
        return np.zeros((height, width, 3), np.float32), np.zeros((height, width, 1), np.float32)
    normalized = np.clip((value - threshold) / (1.0 - threshold), 0.0, 1.0)
    alpha = np.clip((value - threshold) / COVERAGE_EDGE, 0.0, 1.0)
    return colors(normalized), alpha[:, :, np.newaxis].astype(np.float32)


@register(GeneratorType.RUST)
@define
class RustParams(GeneratorParams):
    scale: float = field(default=40.0, converter=clamp(0.01))
    density: float = field(default=0.5, converter=clamp(0.0, 1.0))
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#8b4513", "#a0522d", "#cd853f"]),
        converter=to_ramp,
    )

    def render(self, width, height):
        X, Y = _grid(width, height)
        return _coverage(self.seed, X, Y, self.scale, self.density, self.colors)


@register(GeneratorType.DIRT)
@define
class DirtParams(RustParams):
    scale: float = field(default=50.0, converter=clamp(0.01))
    density: float = field(default=0.4, converter=clamp(0.0, 1.0))
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#3d2817", "#2d1810", "#1d0800"]),
        converter=to_ramp,
    )


@register(GeneratorType.GRUNGE)
@define
class GrungeParams(GeneratorParams):
    scale: float = field(default=40.0, converter=clamp(0.01))
    intensity: float = field(default=0.5, converter=clamp(0.0, 1.0))
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#2a2a2a", "#151515", "#000000"]),
        converter=to_ramp,
    )

    def render(self, width, height):
        X, Y = _grid(width, height)
        return _coverage(self.seed, X, Y, self.scale, self.intensity, self.colors)


def _stamp_segment(
    color: np.ndarray,
    alpha: np.ndarray,
    start: Tuple[float, float],
    end: Tuple[float, float],
    radius: float,
    softness: float,
    rgb: np.ndarray,
) -> None:
    """
    Composite an anti-aliased capsule over premultiplied accumulators.

    Coverage falls off linearly from ``radius`` to ``radius - softness`` in
    point-to-segment distance. Only the segment's bounding box is touched.
    """
    height, width = alpha.shape[:2]
    pad = radius + 1.0
    left = max(0, int(math.floor(min(start[0], end[0]) - pad)))
    right = min(width, int(math.ceil(max(start[0], end[0]) + pad)) + 1)
    top = max(0, int(math.floor(min(start[1], end[1]) - pad)))
    bottom = min(height, int(math.ceil(max(start[1], end[1]) + pad)) + 1)
    if left >= right or top >= bottom:
        return

    Y, X = np.mgrid[top:bottom, left:right].astype(np.float64)
    dx, dy = end[0] - start[0], end[1] - start[1]
    length_sq = dx * dx + dy * dy
    px, py = X - start[0], Y - start[1]
    if length_sq > 0:
        t = np.clip((px * dx + py * dy) / length_sq, 0.0, 1.0)
    else:
        t = np.zeros_like(px)
    distance = np.hypot(px - t * dx, py - t * dy)
    coverage = np.clip((radius - distance) / softness, 0.0, 1.0)[:, :, np.newaxis]

    view = (slice(top, bottom), slice(left, right))
    color[view] = coverage * rgb + (1.0 - coverage) * color[view]
    alpha[view] = coverage + (1.0 - coverage) * alpha[view]


def _unpremultiply(color: np.ndarray, alpha: np.ndarray) -> RenderResult:
    with np.errstate(divide="ignore", invalid="ignore"):
        straight = np.where(alpha > 0, color / alpha, 0.0)
    return np.clip(straight, 0.0, 1.0).astype(np.float32), alpha.astype(np.float32)


@register(GeneratorType.SCRATCHES)
@define
class ScratchesParams(GeneratorParams):
    """Thin straight scratches at a base ``angle`` in degrees."""

    density: int = field(default=50, converter=clamp_int(0, 2000))
    length: float = field(default=100.0, converter=clamp(0.0, 10000.0))
    angle: float = field(default=45.0, converter=clamp(-360.0, 360.0))
    randomness: float = field(default=0.5, converter=clamp(0.0, 1.0))
    thickness: float = field(default=1.5, converter=clamp(0.5, 50.0))
    color: Tuple[int, int, int] = field(default="#ffffff", converter=parse_color)

    def render(self, width, height):
        rng = noise.Random(self.seed)
        color = np.zeros((height, width, 3), dtype=np.float64)
        alpha = np.zeros((height, width, 1), dtype=np.float64)
        rgb = to_float(self.color)
        base = math.radians(self.angle)
        for _ in range(self.density):
            sx = rng.random() * width
            sy = rng.random() * height
            theta = base + (rng.random() - 0.5) * self.randomness * math.pi
            length = self.length * (0.5 + rng.random() * 0.5)
            end = (sx + math.cos(theta) * length, sy + math.sin(theta) * length)
            _stamp_segment(color, alpha, (sx, sy), end, self.thickness, self.thickness, rgb)
        return _unpremultiply(color, alpha)


@register(GeneratorType.SPLATTER)
@define
class SplatterParams(GeneratorParams):
    """Paint drops with smaller satellite droplets around each one."""

    density: int = field(default=20, converter=clamp_int(0, 1000))
    size: float = field(default=12.0, converter=clamp(0.5, 1000.0))
    satellites: int = field(default=6, converter=clamp_int(0, 64))
    spread: float = field(default=2.0, converter=clamp(0.0, 10.0))
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#8b0000", "#b22222"]),
        converter=to_ramp,
    )

    def render(self, width, height):
        rng = noise.Random(self.seed)
        color = np.zeros((height, width, 3), dtype=np.float64)
        alpha = np.zeros((height, width, 1), dtype=np.float64)
        for _ in range(self.density):
            cx = rng.random() * width
            cy = rng.random() * height
            radius = self.size * (0.5 + rng.random())
            rgb = self.colors(np.array(rng.random()))
            theta = rng.random() * 2.0 * math.pi
            stretch = radius * rng.random() * 1.5
            end = (cx + math.cos(theta) * stretch, cy + math.sin(theta) * stretch)
            _stamp_segment(color, alpha, (cx, cy), end, radius + 0.5, 1.0, rgb)
            for _ in range(self.satellites):
                phi = rng.random() * 2.0 * math.pi
                distance = radius * (1.2 + rng.random() * self.spread)
                small = radius * (0.1 + rng.random() * 0.25)
                x0 = cx + math.cos(phi) * distance
                y0 = cy + math.sin(phi) * distance
                x1 = x0 + math.cos(phi) * small * 2.0
                y1 = y0 + math.sin(phi) * small * 2.0
                _stamp_segment(color, alpha, (x0, y0), (x1, y1), small + 0.5, 1.0, rgb)
        return _unpremultiply(color, alpha)


@register(GeneratorType.GRADIENT)
@define
class GradientParams(GeneratorParams):
    angle: float = field(default=0.0, converter=clamp(-360.0, 360.0))
    gradient_type: GradientType = field(
        default=GradientType.LINEAR,
        converter=enum_of(GradientType, GradientType.LINEAR),
    )
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#000000", "#ffffff"]),
        converter=to_ramp,
    )

    def render(self, width, height):
        Z = paint.gradient_index(self.gradient_type, width, height, self.angle)
        return self.colors(Z), _opaque(width, height)


@register(GeneratorType.PATTERN)
@define
class PatternParams(GeneratorParams):
    """Checker, stripes or dots; ``scale`` is the cell size in pixels."""

    scale: float = field(default=20.0, converter=clamp(1.0))
    pattern_type: PatternType = field(
        default=PatternType.CHECKER,
        converter=enum_of(PatternType, PatternType.CHECKER),
    )
    colors: ColorRamp = field(
        factory=lambda: ColorRamp.from_colors(["#ffffff", "#000000"]),
        converter=to_ramp,
    )

    def render(self, width, height):
        X, Y = _grid(width, height)
        index = pattern_index(self.pattern_type, X, Y, self.scale)
        palette = self.colors.colors
        first = to_float(palette[0])
        second = to_float(palette[-1])
        color = np.where(index[:, :, np.newaxis] > 0, second, first)
        return color.astype(np.float32), _opaque(width, height)


def pattern_index(
    pattern_type: PatternType, X: np.ndarray, Y: np.ndarray, scale: float
) -> np.ndarray:
    """Return 0 or 1 per pixel for a two color pattern."""
    ix = np.floor(X / scale).astype(np.int64)
    iy = np.floor(Y / scale).astype(np.int64)
    if pattern_type == PatternType.STRIPES:
        return ix % 2
    if pattern_type == PatternType.DOTS:
        cx = np.mod(X, scale) - scale / 2.0
        cy = np.mod(Y, scale) - scale / 2.0
        return (np.sqrt(cx * cx + cy * cy) >= scale / 3.0).astype(np.int64)
    return (ix + iy) % 2


def make_params(
    generator_type: Union[GeneratorType, str],
    params: Union[GeneratorParams, Mapping[str, Any], None] = None,
) -> GeneratorParams:
    """Build the typed parameters of a generator from a dict."""
    try:
        generator_type = GeneratorType(generator_type)
    except ValueError as e:
        raise UnsupportedParameterCombination(
            "Unknown generator type: %r" % (generator_type,)
        ) from e
    kind = GENERATORS[generator_type]
    if params is None:
        return kind()
    if isinstance(params, GeneratorParams):
        if not isinstance(params, kind):
            raise UnsupportedParameterCombination(
                "%s cannot render %s" % (type(params).__name__, generator_type.value)
            )
        return params
    return structure(kind, params)


def generate(
    generator_type: Union[GeneratorType, str],
    params: Union[GeneratorParams, Mapping[str, Any], None],
    width: int,
    height: int,
) -> PixelBuffer:
    """
    Render a procedural texture.

    :param generator_type: :py:class:`~skin_tools.constants.GeneratorType`
        or its name.
    :param params: typed parameters, a dict with camelCase or snake_case
        keys, or ``None`` for defaults.
    :return: :py:class:`~skin_tools.api.buffer.PixelBuffer`; identical
        arguments always give identical bytes.
    """
    width, height = check_size(width, height)
    typed = make_params(generator_type, params)
    logger.debug("Generating %s at %dx%d" % (typed.generator_type.value, width, height))
    color, alpha = typed.render(width, height)
    return PixelBuffer.fromfloat(color, alpha)

