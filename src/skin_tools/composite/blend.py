"""
Blend mode implementations.

Formulas follow the W3C Compositing and Blending Level 1 recommendation.
``Cb`` is the backdrop and ``Cs`` the source color, both float arrays of
shape ``(height, width, 3)`` in [0, 1].
"""

import logging

import numpy as np

from skin_tools.composite import utils
from skin_tools.constants import BlendMode

logger = logging.getLogger(__name__)


# Separable blend functions
def normal(Cb, Cs):
    return Cs


def multiply(Cb, Cs):
    return Cb * Cs


def screen(Cb, Cs):
    return Cb + Cs - (Cb * Cs)


def overlay(Cb, Cs):
    return hard_light(Cs, Cb)


def darken(Cb, Cs):
    return np.minimum(Cb, Cs)


def lighten(Cb, Cs):
    return np.maximum(Cb, Cs)


def color_dodge(Cb, Cs):
    B = np.zeros_like(Cb, dtype=np.float32)
    B[Cs == 1] = 1
    B[Cb == 0] = 0
    index = (Cs != 1) & (Cb != 0)
    B[index] = np.minimum(1, Cb[index] / (1 - Cs[index]))
    return B


def color_burn(Cb, Cs):
    B = np.zeros_like(Cb, dtype=np.float32)
    B[Cb == 1] = 1
    index = (Cb != 1) & (Cs != 0)
    B[index] = 1 - np.minimum(1, (1 - Cb[index]) / Cs[index])
    return B


def hard_light(Cb, Cs):
    index = Cs > 0.5
    B = multiply(Cb, 2 * Cs)
    B[index] = screen(Cb, 2 * Cs - 1)[index]
    return B


def soft_light(Cb, Cs):
    index = Cb <= 0.25
    index_not = ~index
    D = np.zeros_like(Cb, dtype=np.float32)
    D[index] = ((16 * Cb[index] - 12) * Cb[index] + 4) * Cb[index]
    D[index_not] = np.sqrt(Cb[index_not])

    index = Cs <= 0.5
    index_not = ~index
    B = np.zeros_like(Cb, dtype=np.float32)
    B[index] = Cb[index] - (1 - 2 * Cs[index]) * Cb[index] * (1 - Cb[index])
    B[index_not] = Cb[index_not] + (2 * Cs[index_not] - 1) * (
        D[index_not] - Cb[index_not]
    )
    return B


def difference(Cb, Cs):
    return np.abs(Cb - Cs)


def exclusion(Cb, Cs):
    return Cb + Cs - 2 * Cb * Cs


# Non-separable blend functions
def hue(Cb, Cs):
    return _set_lum(_set_sat(Cs, _sat(Cb)), _lum(Cb))


def saturation(Cb, Cs):
    return _set_lum(_set_sat(Cb, _sat(Cs)), _lum(Cb))


def color(Cb, Cs):
    return _set_lum(Cs, _lum(Cb))


def luminosity(Cb, Cs):
    return _set_lum(Cb, _lum(Cs))


# Helper functions from PDF reference.
def _lum(C):
    return 0.3 * C[:, :, 0:1] + 0.59 * C[:, :, 1:2] + 0.11 * C[:, :, 2:3]


def _set_lum(C, l):
    d = l - _lum(C)
    return _clip_color(C + d)


def _clip_color(C):
    C = np.array(C, dtype=np.float32)
    L = np.repeat(_lum(C), 3, axis=2)
    C_min = np.repeat(np.min(C, axis=2, keepdims=True), 3, axis=2)
    C_max = np.repeat(np.max(C, axis=2, keepdims=True), 3, axis=2)

    index = C_min < 0.0
    L_i = L[index]
    C[index] = L_i + (C[index] - L_i) * L_i / (L_i - C_min[index])

    index = C_max > 1.0
    L_i = L[index]
    C[index] = L_i + (C[index] - L_i) * (1 - L_i) / (C_max[index] - L_i)

    # For numerical stability.
    C[C < 0.0] = 0
    C[C > 1] = 1
    return C


def _sat(C):
    return np.max(C, axis=2, keepdims=True) - np.min(C, axis=2, keepdims=True)


def _set_sat(C, s):
    C_max = np.max(C, axis=2, keepdims=True)
    C_min = np.min(C, axis=2, keepdims=True)
    diff = C_max - C_min

    B = np.zeros_like(C, dtype=np.float32)
    index = np.repeat(diff > 0, 3, axis=2)
    scaled = (C - C_min) * s / np.where(diff > 0, diff, 1.0)
    B[index] = scaled[index]
    return B


"""Blend function table."""
BLEND_FUNC = {
    BlendMode.NORMAL: normal,
    BlendMode.MULTIPLY: multiply,
    BlendMode.SCREEN: screen,
    BlendMode.OVERLAY: overlay,
    BlendMode.DARKEN: darken,
    BlendMode.LIGHTEN: lighten,
    BlendMode.COLOR_DODGE: color_dodge,
    BlendMode.COLOR_BURN: color_burn,
    BlendMode.HARD_LIGHT: hard_light,
    BlendMode.SOFT_LIGHT: soft_light,
    BlendMode.DIFFERENCE: difference,
    BlendMode.EXCLUSION: exclusion,
    BlendMode.HUE: hue,
    BlendMode.SATURATION: saturation,
    BlendMode.COLOR: color,
    BlendMode.LUMINOSITY: luminosity,
}


def get_blend_func(blend_mode):
    """Return the blend function, resolving approximated modes."""
    mode = BlendMode.parse(blend_mode)
    resolved = mode.resolved
    if resolved is not mode:
        logger.debug("Approximate %s blend with %s" % (mode.value, resolved.value))
    return BLEND_FUNC.get(resolved, normal)


def blend_over(color_b, alpha_b, color_s, alpha_s, blend_mode=BlendMode.NORMAL):
    """
    Composite a source over a backdrop with a blend mode.

    Colors are straight ``(h, w, 3)``, alphas ``(h, w, 1)``. The blended
    color replaces the source where the backdrop is opaque, then the result
    is combined by Porter-Duff source-over.

    Fully transparent result pixels carry no color. Their RGB here is a
    placeholder, and
    :py:attr:`~skin_tools.composite.composite.Compositor.color` reports it
    as 0. A composite reproduces its input only up to the color under
    alpha 0.

    :return: straight color and alpha of the result.
    """
    blend_fn = get_blend_func(blend_mode)
    alpha = utils.union(alpha_b, alpha_s)
    color_t = alpha_s * ((1.0 - alpha_b) * color_s + alpha_b * blend_fn(color_b, color_s))
    color = utils.divide((1.0 - alpha_s) * alpha_b * color_b + color_t, alpha)
    return utils.clip(color), alpha


def blend_atop(color_b, color_s, alpha_s, blend_mode=BlendMode.NORMAL):
    """
    Paint a source onto a backdrop with Porter-Duff source-atop.

    The backdrop alpha is kept, so only the straight color changes; where the
    backdrop is transparent the color carries no weight.

    :param alpha_s: source coverage ``(h, w, 1)``.
    :return: straight color of the result.
    """
    blend_fn = get_blend_func(blend_mode)
    return utils.clip((1.0 - alpha_s) * color_b + alpha_s * blend_fn(color_b, color_s))
