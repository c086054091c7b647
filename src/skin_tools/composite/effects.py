"""
Layer effects rendering.

Effects are non-destructive decorations computed from a layer's rendered
color and alpha. They are image based: shadows and glows blur the alpha,
strokes grow or shrink it with morphological operators.

Paint order around the layer content:

- Drop shadow and outer glow are painted below the content.
- Inner shadow, inner glow and color overlay are painted source-atop onto
  the content, in that order, each with its own blend mode. They change the
  content color and never its alpha.
- Stroke is painted last, above everything else.

Example usage (internal)::

    from skin_tools.composite.effects import apply_effects

    color, alpha = apply_effects(layer.effects, color, alpha)
"""

import logging
import math
from typing import Iterable, Tuple

import numpy as np

from skin_tools.api.layers import LayerEffect
from skin_tools.composite import paint, utils
from skin_tools.composite.blend import blend_atop, blend_over
from skin_tools.constants import EffectType, StrokePosition
from skin_tools.registry import new_registry

logger = logging.getLogger(__name__)

EFFECTS, register = new_registry(attribute="effect_type")

BELOW = (EffectType.DROP_SHADOW, EffectType.OUTER_GLOW)
INSIDE = (
    EffectType.INNER_SHADOW,
    EffectType.INNER_GLOW,
    EffectType.COLOR_OVERLAY,
)
ABOVE = (EffectType.STROKE,)


def apply_effects(
    effects: Iterable[LayerEffect], color: np.ndarray, alpha: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Paint enabled effects around the content.

    :param color: straight color ``(h, w, 3)``.
    :param alpha: alpha ``(h, w, 1)``.
    :return: the decorated color and alpha.
    """
    enabled = [effect for effect in effects if effect.enabled]
    if not enabled:
        return color, alpha

    result_color = np.zeros_like(color, dtype=np.float32)
    result_alpha = np.zeros_like(alpha, dtype=np.float32)
    for effect in _ordered(enabled, BELOW):
        effect_color, effect_alpha = _render(effect, color, alpha)
        result_color, result_alpha = blend_over(
            result_color, result_alpha, effect_color, effect_alpha, effect.blend_mode
        )

    content_color = color
    for effect in _ordered(enabled, INSIDE):
        effect_color, coverage = _render(effect, color, alpha)
        content_color = blend_atop(
            content_color, effect_color, coverage, effect.blend_mode
        )

    result_color, result_alpha = utils.over(
        result_color, result_alpha, content_color, alpha
    )

    for effect in _ordered(enabled, ABOVE):
        effect_color, effect_alpha = _render(effect, color, alpha)
        result_color, result_alpha = blend_over(
            result_color, result_alpha, effect_color, effect_alpha, effect.blend_mode
        )
    return result_color, result_alpha


def _ordered(effects, order):
    return sorted(
        (effect for effect in effects if effect.effect_type in order),
        key=lambda effect: order.index(effect.effect_type),
    )


def _render(
    effect: LayerEffect, color: np.ndarray, alpha: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    logger.debug("Rendering %s effect" % effect.effect_type.value)
    height, width = alpha.shape[:2]
    effect_color, coverage = EFFECTS[effect.effect_type](effect, color, alpha[:, :, 0])
    if effect_color is None:
        effect_color = paint.draw_solid_color_fill(effect.color, width, height)
    coverage = utils.clip(coverage)[:, :, np.newaxis] * (effect.opacity / 100.0)
    return effect_color, coverage.astype(np.float32)


def _offset(effect: LayerEffect) -> Tuple[float, float]:
    """Shadow offset ``(dy, dx)``; ``angle`` points to the light source."""
    theta = math.radians(effect.angle)
    return effect.distance * math.sin(theta), -effect.distance * math.cos(theta)


def _soften(plane: np.ndarray, size: float, spread: float) -> np.ndarray:
    from scipy import ndimage  # type: ignore[import-untyped]

    if size > 0:
        plane = ndimage.gaussian_filter(plane, sigma=size / 2.0)
    if spread > 0:
        plane = plane / max(1.0 - spread, 1e-3)
    return utils.clip(plane)


def _shift(plane: np.ndarray, offset: Tuple[float, float]) -> np.ndarray:
    from scipy import ndimage  # type: ignore[import-untyped]

    if offset == (0.0, 0.0):
        return plane
    return ndimage.shift(plane, offset, order=1, mode="constant", cval=0.0)


@register(EffectType.DROP_SHADOW)
def draw_drop_shadow(effect, color, alpha):
    plane = _shift(alpha, _offset(effect))
    return None, _soften(plane, effect.size, effect.spread)


@register(EffectType.OUTER_GLOW)
def draw_outer_glow(effect, color, alpha):
    return None, _soften(alpha, effect.size, effect.spread)


@register(EffectType.INNER_SHADOW)
def draw_inner_shadow(effect, color, alpha):
    plane = 1.0 - _shift(alpha, _offset(effect))
    return None, _soften(plane, effect.size, effect.spread)


@register(EffectType.INNER_GLOW)
def draw_inner_glow(effect, color, alpha):
    return None, _soften(1.0 - alpha, effect.size, effect.spread)


@register(EffectType.COLOR_OVERLAY)
def draw_color_overlay(effect, color, alpha):
    return None, np.ones_like(alpha)


@register(EffectType.STROKE)
def draw_stroke(effect, color, alpha):
    """Stroke band grown outside, inside or centered on the alpha edge."""
    from skimage.morphology import dilation, disk, erosion

    size = effect.size
    if effect.position == StrokePosition.CENTER:
        size /= 2.0
    radius = int(round(size))
    if radius < 1:
        return None, np.zeros_like(alpha)

    footprint = disk(radius)
    if effect.position == StrokePosition.OUTSIDE:
        band = dilation(alpha, footprint) - alpha
    elif effect.position == StrokePosition.INSIDE:
        band = alpha - erosion(alpha, footprint)
    else:
        band = dilation(alpha, footprint) - erosion(alpha, footprint)
    return None, np.maximum(0.0, band)
