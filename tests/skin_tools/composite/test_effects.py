import logging

import numpy as np
import pytest

from skin_tools.api.layers import LayerEffect
from skin_tools.composite.effects import EFFECTS, apply_effects
from skin_tools.constants import EffectType

logger = logging.getLogger(__name__)


@pytest.fixture
def square():
    """White 8x8 square at rows and columns 8 to 15 of a 32x32 canvas."""
    color = np.ones((32, 32, 3), dtype=np.float32)
    alpha = np.zeros((32, 32, 1), dtype=np.float32)
    alpha[8:16, 8:16] = 1.0
    return color, alpha


def test_registry_is_complete():
    assert set(EFFECTS) == set(EffectType)


def test_no_enabled_effects(square):
    color, alpha = square
    effect = LayerEffect("color-overlay", enabled=False, color="#ff0000")
    result_color, result_alpha = apply_effects([effect], color, alpha)
    assert result_color is color
    assert result_alpha is alpha


def test_color_overlay(square):
    effect = LayerEffect("color-overlay", color="#ff0000")
    color, alpha = apply_effects([effect], *square)
    np.testing.assert_allclose(color[12, 12], (1, 0, 0), atol=1e-6)
    np.testing.assert_allclose(alpha, square[1])


def test_color_overlay_opacity(square):
    effect = LayerEffect("color-overlay", color="#ff0000", opacity=50)
    color, alpha = apply_effects([effect], *square)
    np.testing.assert_allclose(color[12, 12], (1, 0.5, 0.5), atol=1e-6)


def test_drop_shadow(square):
    effect = LayerEffect("drop-shadow", color="#000000", distance=4, angle=90, size=0)
    color, alpha = apply_effects([effect], *square)
    # Shadow below the square, content unchanged.
    assert alpha[18, 12, 0] == pytest.approx(1.0, abs=1e-3)
    np.testing.assert_allclose(color[18, 12], 0.0, atol=1e-3)
    np.testing.assert_allclose(color[10, 12], 1.0, atol=1e-6)
    assert alpha[4, 12, 0] == pytest.approx(0.0, abs=1e-6)


def test_drop_shadow_opacity(square):
    effect = LayerEffect("drop-shadow", distance=4, angle=90, size=0, opacity=40)
    color, alpha = apply_effects([effect], *square)
    assert alpha[18, 12, 0] == pytest.approx(0.4, abs=1e-3)


def test_outer_glow(square):
    effect = LayerEffect("outer-glow", color="#ffff00", size=4)
    color, alpha = apply_effects([effect], *square)
    assert 0.0 < alpha[17, 12, 0] < 1.0
    assert alpha[12, 12, 0] == pytest.approx(1.0)
    np.testing.assert_allclose(color[12, 12], 1.0, atol=1e-6)


@pytest.mark.parametrize(
    "position, stroke_pixel, content_pixel",
    [
        ("outside", (17, 12), (12, 12)),
        ("inside", (8, 12), (12, 12)),
        ("center", (16, 12), (12, 12)),
        ("center", (15, 12), (11, 11)),
    ],
)
def test_stroke(square, position, stroke_pixel, content_pixel):
    effect = LayerEffect("stroke", color="#ff0000", size=2, position=position)
    color, alpha = apply_effects([effect], *square)
    np.testing.assert_allclose(color[stroke_pixel], (1, 0, 0), atol=1e-6)
    assert alpha[stroke_pixel][0] == pytest.approx(1.0)
    np.testing.assert_allclose(color[content_pixel], 1.0, atol=1e-6)


def test_stroke_outside_extent(square):
    effect = LayerEffect("stroke", size=2, position="outside")
    color, alpha = apply_effects([effect], *square)
    assert alpha[17, 12, 0] == pytest.approx(1.0)
    assert alpha[19, 12, 0] == 0.0


def test_stroke_zero_size(square):
    effect = LayerEffect("stroke", size=0, color="#ff0000")
    color, alpha = apply_effects([effect], *square)
    np.testing.assert_allclose(alpha, square[1])
    np.testing.assert_allclose(color[12, 12], 1.0, atol=1e-6)


def test_inner_shadow(square):
    effect = LayerEffect("inner-shadow", color="#000000", distance=3, angle=90, size=0)
    color, alpha = apply_effects([effect], *square)
    np.testing.assert_allclose(color[8, 12], 0.0, atol=1e-3)
    np.testing.assert_allclose(color[14, 12], 1.0, atol=1e-3)
    np.testing.assert_allclose(alpha, square[1], atol=1e-6)


def test_inner_glow(square):
    effect = LayerEffect("inner-glow", color="#ff0000", size=4)
    color, alpha = apply_effects([effect], *square)
    assert color[8, 12, 1] < color[12, 12, 1]
    np.testing.assert_allclose(alpha, square[1], atol=1e-6)


def test_color_overlay_translucent():
    color = np.ones((4, 4, 3), dtype=np.float32)
    alpha = np.full((4, 4, 1), 0.5, dtype=np.float32)
    effect = LayerEffect("color-overlay", color="#0000ff")
    result_color, result_alpha = apply_effects([effect], color, alpha)
    np.testing.assert_allclose(result_color, np.broadcast_to((0, 0, 1), (4, 4, 3)), atol=1e-6)
    np.testing.assert_allclose(result_alpha, alpha, atol=1e-6)


@pytest.mark.parametrize(
    "effect",
    [
        LayerEffect("color-overlay", color="#00ff00"),
        LayerEffect("inner-shadow", distance=2, angle=90, size=2),
        LayerEffect("inner-glow", color="#ff0000", size=2),
    ],
)
def test_inner_effects_keep_alpha(effect):
    color = np.ones((16, 16, 3), dtype=np.float32)
    alpha = np.zeros((16, 16, 1), dtype=np.float32)
    alpha[4:12, 4:12] = 0.25
    result_color, result_alpha = apply_effects([effect], color, alpha)
    np.testing.assert_allclose(result_alpha, alpha, atol=1e-6)


def test_paint_order(square):
    effects = [
        LayerEffect("color-overlay", color="#0000ff"),
        LayerEffect("drop-shadow", color="#ff0000", distance=0, size=6),
    ]
    color, alpha = apply_effects(effects, *square)
    # The overlay sits above the content, the shadow below it.
    np.testing.assert_allclose(color[12, 12], (0, 0, 1), atol=1e-6)
    assert color[17, 12, 0] > 0.99
