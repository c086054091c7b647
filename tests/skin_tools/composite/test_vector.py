import logging

import numpy as np
import pytest

from skin_tools.api.layers import Gradient, ShapeSpec, Stroke
from skin_tools.composite.vector import dash_polyline, draw_shape, shape_outline

from ...conftest import skip_without_aggdraw

logger = logging.getLogger(__name__)


def test_rectangle_outline():
    outline, closed = shape_outline(ShapeSpec("rectangle"), 100, 50)
    assert closed
    np.testing.assert_allclose(outline, [[30, 15], [70, 15], [70, 35], [30, 35]])


def test_rounded_rectangle_outline():
    outline, closed = shape_outline(ShapeSpec("rectangle", corner_radius=5), 100, 50)
    assert closed
    assert len(outline) > 4
    assert outline[:, 0].min() == pytest.approx(30)
    assert outline[:, 0].max() == pytest.approx(70)


def test_ellipse_outline():
    outline, closed = shape_outline(ShapeSpec("ellipse"), 100, 100)
    assert closed
    np.testing.assert_allclose(outline[:, 0].max(), 90)
    np.testing.assert_allclose(outline[:, 1].max(), 74, atol=0.1)


@pytest.mark.parametrize(
    "spec, count",
    [
        (ShapeSpec("polygon", sides=6), 6),
        (ShapeSpec("polygon", points=[(0, 0), (10, 0), (5, 5)]), 3),
        (ShapeSpec("star", star_points=5), 10),
    ],
)
def test_polygon_outline(spec, count):
    outline, closed = shape_outline(spec, 100, 100)
    assert closed
    assert outline.shape == (count, 2)


def test_polygon_starts_at_top():
    outline, _ = shape_outline(ShapeSpec("polygon", sides=4, outer_radius=10), 100, 100)
    np.testing.assert_allclose(outline[0], (50, 40), atol=1e-9)


def test_star_radii():
    spec = ShapeSpec("star", star_points=4, outer_radius=20, inner_radius=5)
    outline, _ = shape_outline(spec, 100, 100)
    radii = np.hypot(outline[:, 0] - 50, outline[:, 1] - 50)
    np.testing.assert_allclose(radii[0::2], 20)
    np.testing.assert_allclose(radii[1::2], 5)


def test_line_outline():
    outline, closed = shape_outline(ShapeSpec("line"), 100, 100)
    assert not closed
    np.testing.assert_allclose(outline, [[10, 50], [90, 50]])


@pytest.mark.parametrize(
    "points, closed, expected",
    [
        ([(0, 0), (10, 0), (5, 8)], True, True),
        ([(0, 0), (10, 0), (5, 8)], False, False),
        ([(0, 0), (10, 0)], True, False),
    ],
)
def test_path_outline(points, closed, expected):
    outline, is_closed = shape_outline(
        ShapeSpec("path", points=points, closed=closed), 100, 100
    )
    assert is_closed == expected
    assert len(outline) == len(points)


def test_dash_polyline():
    points = np.array([[0.0, 0.0], [10.0, 0.0]])
    pieces = dash_polyline(points, [2, 3])
    assert len(pieces) == 2
    np.testing.assert_allclose(pieces[0], [[0, 0], [2, 0]])
    np.testing.assert_allclose(pieces[1], [[5, 0], [7, 0]])


def test_dash_polyline_odd_pattern():
    points = np.array([[0.0, 0.0], [10.0, 0.0]])
    pieces = dash_polyline(points, [2])
    assert len(pieces) == 3
    np.testing.assert_allclose(pieces[2], [[8, 0], [10, 0]])


def test_dash_polyline_across_corner():
    points = np.array([[0.0, 0.0], [4.0, 0.0], [4.0, 4.0]])
    pieces = dash_polyline(points, [6, 10])
    assert len(pieces) == 1
    np.testing.assert_allclose(pieces[0], [[0, 0], [4, 0], [4, 2]])


@pytest.mark.parametrize("pattern", [[], [0, 0]])
def test_dash_polyline_solid(pattern):
    points = np.array([[0.0, 0.0], [10.0, 0.0]])
    pieces = dash_polyline(points, pattern)
    assert len(pieces) == 1
    assert pieces[0] is points


@skip_without_aggdraw
def test_draw_rectangle():
    color, alpha = draw_shape(ShapeSpec("rectangle", fill="#ff0000"), 100, 50)
    assert alpha[25, 50, 0] == pytest.approx(1.0)
    np.testing.assert_allclose(color[25, 50], (1, 0, 0), atol=1e-6)
    assert alpha[2, 2, 0] == 0.0


@skip_without_aggdraw
def test_draw_gradient_fill():
    gradient = Gradient(stops=["#000000", "#ffffff"])
    color, alpha = draw_shape(ShapeSpec("ellipse", gradient=gradient), 100, 100)
    assert color[50, 20, 0] < color[50, 80, 0]
    assert alpha[50, 50, 0] == pytest.approx(1.0)


@skip_without_aggdraw
def test_draw_stroke_only():
    spec = ShapeSpec("rectangle", fill=None, stroke=Stroke(color="#00ff00", width=2))
    color, alpha = draw_shape(spec, 100, 50)
    assert alpha[25, 50, 0] == 0.0
    assert alpha[15, 50, 0] > 0.5
    np.testing.assert_allclose(color[15, 50], (0, 1, 0), atol=1e-6)


@skip_without_aggdraw
def test_draw_line():
    spec = ShapeSpec("line", stroke=Stroke(color="#ffffff", width=3))
    color, alpha = draw_shape(spec, 100, 100)
    assert alpha[50, 50, 0] > 0.9
    assert alpha[40, 50, 0] == 0.0


@skip_without_aggdraw
def test_draw_dashed_line():
    stroke = Stroke(width=2, dash_array=(10, 10))
    spec = ShapeSpec("line", points=[(0, 10), (100, 10)], stroke=stroke)
    color, alpha = draw_shape(spec, 100, 20)
    assert alpha[10, 5, 0] > 0.5
    assert alpha[10, 15, 0] == 0.0


@skip_without_aggdraw
def test_draw_degenerate_path():
    color, alpha = draw_shape(ShapeSpec("path", points=[(1, 1)]), 10, 10)
    assert not np.any(alpha)
