"""Utility functions for composite operations."""

from typing import Tuple, Union, overload

import numpy as np
from numpy.typing import NDArray


def divide(a: NDArray[np.floating], b: NDArray[np.floating]) -> NDArray[np.floating]:
    """Safe division for color ops."""
    with np.errstate(divide="ignore", invalid="ignore"):
        c = np.true_divide(a, b)
        c[~np.isfinite(c)] = 1.0
    return c


@overload
def union(backdrop: float, source: float) -> float: ...


@overload
def union(
    backdrop: NDArray[np.floating], source: NDArray[np.floating]
) -> NDArray[np.floating]: ...


@overload
def union(backdrop: float, source: NDArray[np.floating]) -> NDArray[np.floating]: ...


@overload
def union(backdrop: NDArray[np.floating], source: float) -> NDArray[np.floating]: ...


def union(
    backdrop: Union[float, NDArray[np.floating]],
    source: Union[float, NDArray[np.floating]],
) -> Union[float, NDArray[np.floating]]:
    """Generalized union of shape."""
    return backdrop + source - (backdrop * source)


def clip(x: NDArray[np.floating]) -> NDArray[np.floating]:
    """Clip between [0, 1]."""
    return np.clip(x, 0.0, 1.0)


def over(
    color_b: np.ndarray, alpha_b: np.ndarray, color_s: np.ndarray, alpha_s: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """Porter-Duff source-over of straight colors."""
    alpha = union(alpha_b, alpha_s)
    color = divide(alpha_s * color_s + (1.0 - alpha_s) * alpha_b * color_b, alpha)
    return clip(color), alpha


def premultiply(color: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """Stack premultiplied color and alpha into ``(h, w, 4)``."""
    return np.concatenate((color * alpha, alpha), axis=2)


def unpremultiply(rgba: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Split ``(h, w, 4)`` premultiplied pixels into straight color and alpha."""
    alpha = clip(rgba[:, :, 3:4])
    color = clip(divide(rgba[:, :, :3], alpha))
    color[np.repeat(alpha, 3, axis=2) <= 0] = 0.0
    return color, alpha


def warp(
    rgba: np.ndarray, matrix: np.ndarray, width: int, height: int
) -> np.ndarray:
    """
    Resample premultiplied pixels through an affine matrix.

    ``matrix`` maps source ``(x, y)`` to target ``(x, y)`` in pixel units;
    pixel centers sit at half-integers. Samples are bilinear and clamp to the
    nearest source pixel; coverage of the source rectangle is anti-aliased
    over one target pixel, and samples outside it are transparent.
    """
    from scipy import ndimage  # type: ignore[import-untyped]

    inverse = np.linalg.inv(matrix)
    Y, X = np.mgrid[0:height, 0:width].astype(np.float64)
    X += 0.5
    Y += 0.5
    src_c = inverse[0, 0] * X + inverse[0, 1] * Y + inverse[0, 2] - 0.5
    src_r = inverse[1, 0] * X + inverse[1, 1] * Y + inverse[1, 2] - 0.5

    rows, cols = rgba.shape[:2]
    distance = np.minimum(
        np.minimum(src_r + 0.5, rows - 0.5 - src_r),
        np.minimum(src_c + 0.5, cols - 0.5 - src_c),
    )
    scale = np.sqrt(abs(np.linalg.det(matrix[:2, :2])))
    coverage = clip(distance * scale + 0.5)

    planes = [
        ndimage.map_coordinates(
            rgba[:, :, i], (src_r, src_c), order=1, mode="nearest"
        )
        * coverage
        for i in range(rgba.shape[2])
    ]
    return clip(np.stack(planes, axis=2)).astype(np.float32)


def is_identity(matrix: np.ndarray) -> bool:
    return bool(np.allclose(matrix, np.eye(3), atol=1e-9))
