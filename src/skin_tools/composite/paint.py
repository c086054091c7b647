"""Paint and fill operations for compositing."""

import logging
from typing import Sequence, Union

import numpy as np

from skin_tools.api.color import to_float
from skin_tools.api.layers import Gradient
from skin_tools.constants import GradientType

logger = logging.getLogger(__name__)


def draw_solid_color_fill(color: Sequence[int], width: int, height: int) -> np.ndarray:
    """
    Create a solid color fill.
    """
    return np.full((height, width, 3), to_float(color), dtype=np.float32)


def draw_gradient_fill(gradient: Gradient, width: int, height: int) -> np.ndarray:
    """
    Create a gradient fill image of shape ``(height, width, 3)``.

    The index map spans the canvas: linear gradients run edge to edge at
    ``angle`` degrees, radial gradients reach 1 at half the longer side.
    """
    Z = gradient_index(
        gradient.gradient_type, width, height, gradient.angle, gradient.scale
    )
    if gradient.reverse:
        Z = 1.0 - Z
    return gradient.stops(Z)


def gradient_index(
    gradient_type: Union[GradientType, str],
    width: int,
    height: int,
    angle: float = 0.0,
    scale: float = 1.0,
) -> np.ndarray:
    """Generates the [0, 1] index map of a gradient over the canvas."""
    ratio = angle % 90
    extent = scale * ((90.0 - ratio) / 90.0 * width + (ratio / 90.0) * height)
    extent = max(extent, 1e-6)
    X, Y = np.meshgrid(
        np.linspace(-width / extent, width / extent, width, dtype=np.float32),
        np.linspace(-height / extent, height / extent, height, dtype=np.float32),
    )

    gradient_type = GradientType(gradient_type)
    if gradient_type == GradientType.LINEAR:
        Z = _make_linear_gradient(X, Y, angle)
    elif gradient_type == GradientType.RADIAL:
        Z = _make_radial_gradient(X, Y)
    elif gradient_type == GradientType.ANGLE:
        Z = _make_angle_gradient(X, Y, angle)
    elif gradient_type == GradientType.REFLECTED:
        Z = _make_reflected_gradient(X, Y, angle)
    else:
        Z = _make_diamond_gradient(X, Y, angle)
    return np.maximum(0.0, np.minimum(1.0, Z))


def _make_linear_gradient(X, Y, angle):
    """Generates index map for linear gradients."""
    theta = np.radians(angle % 360)
    Z = 0.5 * (np.cos(theta) * X - np.sin(theta) * Y + 1)
    return Z


def _make_radial_gradient(X, Y):
    """Generates index map for radial gradients."""
    Z = np.sqrt(np.power(X, 2) + np.power(Y, 2))
    return Z


def _make_angle_gradient(X, Y, angle):
    """Generates index map for angle gradients."""
    Z = (((180 * np.arctan2(Y, X) / np.pi) + angle) % 360) / 360
    return Z


def _make_reflected_gradient(X, Y, angle):
    """Generates index map for reflected gradients."""
    theta = np.radians(angle % 360)
    Z = np.abs((np.cos(theta) * X - np.sin(theta) * Y))
    return Z


def _make_diamond_gradient(X, Y, angle):
    """Generates index map for diamond gradients."""
    theta = np.radians(angle % 360)
    Z = np.abs(np.cos(theta) * X - np.sin(theta) * Y) + np.abs(
        np.sin(theta) * X + np.cos(theta) * Y
    )
    return Z
