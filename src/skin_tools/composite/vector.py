"""Vector shapes and path operations for compositing."""

import logging
import math
from typing import List, Sequence, Tuple

import numpy as np
from PIL import Image

from skin_tools.api.layers import ShapeSpec
from skin_tools.composite import paint, utils
from skin_tools.composite._compat import require_aggdraw
from skin_tools.constants import ShapeType

logger = logging.getLogger(__name__)

# Segments used to approximate curves.
ARC_SEGMENTS = 16
ELLIPSE_SEGMENTS = 128


@require_aggdraw
def draw_shape(
    spec: ShapeSpec, width: int, height: int
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Draw a shape.

    Requires aggdraw for anti-aliased polygon rasterization.

    :return: straight color ``(h, w, 3)`` and alpha ``(h, w, 1)``; the stroke
        is painted over the fill.
    """
    outline, closed = shape_outline(spec, width, height)
    color = np.zeros((height, width, 3), dtype=np.float32)
    alpha = np.zeros((height, width, 1), dtype=np.float32)
    if len(outline) < 2:
        logger.warning("not enough points: %d" % len(outline))
        return color, alpha

    if closed and (spec.fill is not None or spec.gradient is not None):
        if spec.gradient is not None:
            color = paint.draw_gradient_fill(spec.gradient, width, height)
        else:
            color = paint.draw_solid_color_fill(spec.fill, width, height)
        alpha = _draw_polygon(outline, width, height)

    stroke = spec.stroke
    if stroke is not None and stroke.width > 0:
        points = outline
        if closed:
            points = np.concatenate((outline, outline[:1]), axis=0)
        pieces = dash_polyline(points, stroke.dash_array)
        stroke_alpha = _draw_lines(pieces, stroke.width, width, height)
        stroke_color = paint.draw_solid_color_fill(stroke.color, width, height)
        color, alpha = utils.over(color, alpha, stroke_color, stroke_alpha)
    return color, alpha


def shape_outline(
    spec: ShapeSpec, width: int, height: int
) -> Tuple[np.ndarray, bool]:
    """
    Return the outline points ``(N, 2)`` and whether the outline is closed.

    Primitives are centered on the canvas and sized from
    ``0.4 * min(width, height)`` unless explicit points or radii are given.
    """
    size = min(width, height) * 0.4
    cx, cy = width / 2.0, height / 2.0
    explicit = np.array(spec.points, dtype=np.float64).reshape(-1, 2)
    kind = spec.shape_type

    if kind == ShapeType.RECTANGLE:
        return _rounded_rect(cx - size, cy - size / 2.0, 2 * size, size, spec.corner_radius), True

    if kind == ShapeType.ELLIPSE:
        theta = np.linspace(0.0, 2.0 * math.pi, ELLIPSE_SEGMENTS, endpoint=False)
        rx, ry = size, size * 0.6
        return np.stack((cx + rx * np.cos(theta), cy + ry * np.sin(theta)), axis=1), True

    if kind == ShapeType.POLYGON:
        if len(explicit) >= 3:
            return explicit, True
        radius = spec.outer_radius if spec.outer_radius is not None else size
        theta = -math.pi / 2 + np.arange(spec.sides) * 2.0 * math.pi / spec.sides
        return np.stack((cx + radius * np.cos(theta), cy + radius * np.sin(theta)), axis=1), True

    if kind == ShapeType.STAR:
        outer = spec.outer_radius if spec.outer_radius is not None else size
        inner = spec.inner_radius if spec.inner_radius is not None else size * 0.5
        count = spec.star_points * 2
        theta = -math.pi / 2 + np.arange(count) * math.pi / spec.star_points
        radius = np.where(np.arange(count) % 2 == 0, outer, inner)
        return np.stack((cx + radius * np.cos(theta), cy + radius * np.sin(theta)), axis=1), True

    if kind == ShapeType.LINE:
        if len(explicit) >= 2:
            return explicit, False
        return np.array([[cx - size, cy], [cx + size, cy]], dtype=np.float64), False

    return explicit, spec.closed and len(explicit) >= 3


def _rounded_rect(x: float, y: float, w: float, h: float, radius: float) -> np.ndarray:
    radius = max(0.0, min(radius, w / 2.0, h / 2.0))
    if radius == 0:
        return np.array([[x, y], [x + w, y], [x + w, y + h], [x, y + h]], dtype=np.float64)
    corners = [
        (x + w - radius, y + radius, -math.pi / 2),
        (x + w - radius, y + h - radius, 0.0),
        (x + radius, y + h - radius, math.pi / 2),
        (x + radius, y + radius, math.pi),
    ]
    points = []
    for ccx, ccy, start in corners:
        theta = start + np.linspace(0.0, math.pi / 2, ARC_SEGMENTS + 1)
        arc = (ccx + radius * np.cos(theta), ccy + radius * np.sin(theta))
        points.append(np.stack(arc, axis=1))
    return np.concatenate(points, axis=0)


def dash_polyline(points: np.ndarray, pattern: Sequence[float]) -> List[np.ndarray]:
    """
    Split a polyline into dashes.

    ``pattern`` alternates on and off lengths; an odd-length pattern is
    repeated once, and an empty or all-zero pattern draws a solid line.
    """
    pattern = [float(p) for p in pattern]
    if len(pattern) % 2 == 1:
        pattern = pattern * 2
    if not pattern or sum(pattern) <= 0:
        return [points]

    pieces: List[np.ndarray] = []
    current: List[np.ndarray] = []
    index, remaining, on = 0, pattern[0], True
    for start, end in zip(points[:-1], points[1:]):
        length = float(np.hypot(*(end - start)))
        position = 0.0
        while length - position > 1e-9:
            step = min(remaining, length - position)
            a = start + (end - start) * (position / length)
            b = start + (end - start) * ((position + step) / length)
            if on:
                if not current:
                    current.append(a)
                current.append(b)
            position += step
            remaining -= step
            if remaining <= 1e-9:
                if on and current:
                    pieces.append(np.array(current))
                current = []
                index = (index + 1) % len(pattern)
                remaining, on = pattern[index], not on
    if on and len(current) >= 2:
        pieces.append(np.array(current))
    return pieces


def _draw_polygon(points: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Rasterize a filled polygon using aggdraw.

    Note: Callers must be decorated with @require_aggdraw before calling.
    """
    import aggdraw  # type: ignore[import-not-found]

    mask = Image.new("L", (width, height), 0)
    draw = aggdraw.Draw(mask)
    brush = aggdraw.Brush(255)
    draw.polygon(points.ravel().tolist(), None, brush)
    draw.flush()
    del draw
    return np.expand_dims(np.array(mask).astype(np.float32) / 255.0, 2)


def _draw_lines(
    pieces: List[np.ndarray], stroke_width: float, width: int, height: int
) -> np.ndarray:
    """Rasterize open polylines using aggdraw."""
    import aggdraw  # type: ignore[import-not-found]

    mask = Image.new("L", (width, height), 0)
    draw = aggdraw.Draw(mask)
    pen = aggdraw.Pen(255, stroke_width)
    for piece in pieces:
        if len(piece) < 2:
            continue
        draw.line(piece.ravel().tolist(), pen)
    draw.flush()
    del draw
    return np.expand_dims(np.array(mask).astype(np.float32) / 255.0, 2)
