"""
Convolution kernels and helpers.

Kernels are laid out as ``kernel[dy + 1][dx + 1]`` and applied by
correlation, so ``SOBEL_X`` responds positively to values increasing to the
right. All helpers clamp taps to the nearest edge pixel.
"""

import math

import numpy as np

from skin_tools.constants import NormalMethod

SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64)
SOBEL_Y = SOBEL_X.T.copy()

PREWITT_X = np.array([[-1, 0, 1], [-1, 0, 1], [-1, 0, 1]], dtype=np.float64)
PREWITT_Y = PREWITT_X.T.copy()

SCHARR_X = np.array([[-3, 0, 3], [-10, 0, 10], [-3, 0, 3]], dtype=np.float64)
SCHARR_Y = SCHARR_X.T.copy()

EMBOSS = np.array([[-2, -1, 0], [-1, 1, 1], [0, 1, 2]], dtype=np.float64)

GRADIENT_KERNELS = {
    NormalMethod.SOBEL: (SOBEL_X, SOBEL_Y),
    NormalMethod.PREWITT: (PREWITT_X, PREWITT_Y),
    NormalMethod.SCHARR: (SCHARR_X, SCHARR_Y),
}

for _kernel in (SOBEL_X, SOBEL_Y, PREWITT_X, PREWITT_Y, SCHARR_X, SCHARR_Y, EMBOSS):
    _kernel.setflags(write=False)


def gaussian_kernel(radius: float) -> np.ndarray:
    """
    Normalized 1D Gaussian with ``sigma = radius / 3`` and
    ``ceil(radius)`` taps on each side.
    """
    half = int(math.ceil(radius))
    sigma = radius / 3.0
    x = np.arange(-half, half + 1, dtype=np.float64)
    kernel = np.exp(-(x * x) / (2.0 * sigma * sigma))
    return kernel / np.sum(kernel)


def correlate(plane: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """2D correlation of a single plane with clamp-to-edge sampling."""
    from scipy import ndimage  # type: ignore[import-untyped]

    return ndimage.correlate(plane, kernel, mode="nearest")


def gaussian_blur(plane: np.ndarray, radius: float) -> np.ndarray:
    """Separable Gaussian blur of a ``(h, w)`` or ``(h, w, c)`` array."""
    from scipy import ndimage  # type: ignore[import-untyped]

    if radius <= 0:
        return plane
    kernel = gaussian_kernel(radius)
    blurred = ndimage.correlate1d(plane, kernel, axis=1, mode="nearest")
    return ndimage.correlate1d(blurred, kernel, axis=0, mode="nearest")
