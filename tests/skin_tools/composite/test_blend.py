import logging

import numpy as np
import pytest

from skin_tools.composite import blend, utils
from skin_tools.composite.blend import blend_over, get_blend_func
from skin_tools.constants import BlendMode

logger = logging.getLogger(__name__)


def _pixel(*rgb):
    if len(rgb) == 1:
        rgb = rgb * 3
    return np.array(rgb, dtype=np.float32).reshape(1, 1, 3)


@pytest.mark.parametrize(
    "mode, backdrop, source, expected",
    [
        (BlendMode.NORMAL, 0.2, 0.8, 0.8),
        (BlendMode.MULTIPLY, 0.5, 0.5, 0.25),
        (BlendMode.SCREEN, 0.5, 0.5, 0.75),
        (BlendMode.OVERLAY, 0.25, 0.5, 0.25),
        (BlendMode.OVERLAY, 0.75, 0.5, 0.75),
        (BlendMode.DARKEN, 0.3, 0.6, 0.3),
        (BlendMode.LIGHTEN, 0.3, 0.6, 0.6),
        (BlendMode.COLOR_DODGE, 0.5, 0.5, 1.0),
        (BlendMode.COLOR_DODGE, 0.25, 0.5, 0.5),
        (BlendMode.COLOR_DODGE, 0.0, 0.9, 0.0),
        (BlendMode.COLOR_DODGE, 0.3, 1.0, 1.0),
        (BlendMode.COLOR_BURN, 0.5, 0.5, 0.0),
        (BlendMode.COLOR_BURN, 0.75, 0.5, 0.5),
        (BlendMode.COLOR_BURN, 1.0, 0.2, 1.0),
        (BlendMode.COLOR_BURN, 0.3, 0.0, 0.0),
        (BlendMode.HARD_LIGHT, 0.5, 0.75, 0.75),
        (BlendMode.HARD_LIGHT, 0.5, 0.25, 0.25),
        (BlendMode.SOFT_LIGHT, 0.5, 0.5, 0.5),
        (BlendMode.SOFT_LIGHT, 0.25, 0.0, 0.0625),
        (BlendMode.DIFFERENCE, 0.2, 0.7, 0.5),
        (BlendMode.EXCLUSION, 0.5, 0.5, 0.5),
        (BlendMode.LINEAR_BURN, 0.5, 0.5, 0.25),
        (BlendMode.LINEAR_DODGE, 0.5, 0.5, 0.75),
        (BlendMode.DISSOLVE, 0.2, 0.8, 0.8),
    ],
)
def test_separable(mode, backdrop, source, expected):
    result = get_blend_func(mode)(_pixel(backdrop), _pixel(source))
    np.testing.assert_allclose(result, expected, atol=1e-6)


@pytest.mark.parametrize(
    "func, backdrop, source, expected",
    [
        (blend.hue, _pixel(0.5), _pixel(1, 0, 0), (0.5, 0.5, 0.5)),
        (blend.saturation, _pixel(0.5), _pixel(1, 0, 0), (0.5, 0.5, 0.5)),
        (blend.color, _pixel(0.5), _pixel(0.2), (0.5, 0.5, 0.5)),
        (blend.luminosity, _pixel(0.5), _pixel(0.2), (0.2, 0.2, 0.2)),
    ],
)
def test_non_separable_gray(func, backdrop, source, expected):
    np.testing.assert_allclose(func(backdrop, source)[0, 0], expected, atol=1e-6)


def test_non_separable_keeps_backdrop_luminosity():
    backdrop = _pixel(0.2, 0.4, 0.6)
    for func in (blend.hue, blend.saturation, blend.color):
        result = func(backdrop, _pixel(0.9, 0.1, 0.3))
        np.testing.assert_allclose(blend._lum(result), blend._lum(backdrop), atol=1e-5)


def test_non_separable_range():
    rng = np.random.RandomState(0)
    backdrop = rng.random_sample((8, 8, 3)).astype(np.float32)
    source = rng.random_sample((8, 8, 3)).astype(np.float32)
    for func in (blend.hue, blend.saturation, blend.color, blend.luminosity):
        result = func(backdrop, source)
        assert result.min() >= 0.0 and result.max() <= 1.0


@pytest.mark.parametrize("mode", ["unknown", None, "source-over"])
def test_fallback_to_normal(mode):
    assert get_blend_func(mode) is blend.normal


def test_every_mode_has_a_function():
    for mode in BlendMode:
        assert callable(get_blend_func(mode))


def test_blend_over_transparent_backdrop():
    color, alpha = blend_over(
        _pixel(0.0), np.zeros((1, 1, 1)), _pixel(0.3, 0.6, 0.9), np.ones((1, 1, 1)),
        BlendMode.MULTIPLY,
    )
    np.testing.assert_allclose(color[0, 0], (0.3, 0.6, 0.9), atol=1e-6)
    np.testing.assert_allclose(alpha, 1.0)


def test_blend_over_opaque_backdrop():
    color, alpha = blend_over(
        _pixel(0.5), np.ones((1, 1, 1)), _pixel(0.5), np.ones((1, 1, 1)),
        BlendMode.MULTIPLY,
    )
    np.testing.assert_allclose(color, 0.25, atol=1e-6)
    np.testing.assert_allclose(alpha, 1.0)


def test_blend_over_half_opacity():
    color, alpha = blend_over(
        _pixel(0.0), np.ones((1, 1, 1)), _pixel(1.0), np.full((1, 1, 1), 0.5)
    )
    np.testing.assert_allclose(color, 0.5, atol=1e-6)
    np.testing.assert_allclose(alpha, 1.0)


def test_blend_over_invisible_source():
    backdrop = _pixel(0.1, 0.2, 0.3)
    color, alpha = blend_over(
        backdrop, np.full((1, 1, 1), 0.5), _pixel(1.0), np.zeros((1, 1, 1)),
        BlendMode.SCREEN,
    )
    np.testing.assert_allclose(color, backdrop, atol=1e-6)
    np.testing.assert_allclose(alpha, 0.5)


def test_divide():
    result = utils.divide(np.array([1.0, 0.0, 2.0]), np.array([2.0, 0.0, 0.0]))
    assert result.tolist() == [0.5, 1.0, 1.0]


def test_union():
    assert utils.union(0.5, 0.5) == 0.75
    assert utils.union(0.0, 0.3) == pytest.approx(0.3)


def test_over():
    color, alpha = utils.over(
        _pixel(0.0), np.ones((1, 1, 1)), _pixel(1.0), np.full((1, 1, 1), 0.25)
    )
    np.testing.assert_allclose(color, 0.25, atol=1e-6)
    np.testing.assert_allclose(alpha, 1.0)


def test_premultiply_roundtrip():
    color = np.array([[[0.2, 0.4, 0.6], [1.0, 1.0, 1.0]]], dtype=np.float32)
    alpha = np.array([[[0.5], [0.0]]], dtype=np.float32)
    straight, restored = utils.unpremultiply(utils.premultiply(color, alpha))
    np.testing.assert_allclose(straight[0, 0], (0.2, 0.4, 0.6), atol=1e-6)
    np.testing.assert_allclose(straight[0, 1], 0.0)
    np.testing.assert_allclose(restored, alpha)


def test_warp_identity():
    rng = np.random.RandomState(1)
    rgba = rng.random_sample((6, 5, 4)).astype(np.float32)
    result = utils.warp(rgba, np.eye(3), 5, 6)
    np.testing.assert_allclose(result, rgba, atol=1e-6)


def test_warp_translate():
    rgba = np.ones((2, 2, 4), dtype=np.float32)
    matrix = np.array([[1.0, 0, 3], [0, 1.0, 1], [0, 0, 1]])
    result = utils.warp(rgba, matrix, 6, 4)
    assert result[1, 3, 3] == pytest.approx(1.0)
    assert result[2, 4, 3] == pytest.approx(1.0)
    assert result[0, 0, 3] == 0.0
    assert result[1, 5, 3] == 0.0
