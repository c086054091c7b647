import logging

import numpy as np

from skin_tools.api.buffer import PixelBuffer

logging.basicConfig(level=logging.DEBUG)


def solid(width, height, color):
    """Opaque or translucent single color buffer."""
    return PixelBuffer.new(width, height, color)


def gradient_buffer(width=16, height=16):
    """Opaque horizontal gray ramp, useful as a height field."""
    ramp = np.linspace(0, 255, width).round().astype(np.uint8)
    gray = np.tile(ramp, (height, 1))
    return PixelBuffer.fromarray(gray)


def checker_buffer(width=16, height=16, cell=4):
    Y, X = np.mgrid[0:height, 0:width]
    gray = np.where(((X // cell) + (Y // cell)) % 2 == 0, 255, 0).astype(np.uint8)
    return PixelBuffer.fromarray(gray)


def random_buffer(width=8, height=8, seed=0, opaque=False):
    rng = np.random.RandomState(seed)
    array = rng.randint(0, 256, size=(height, width, 4)).astype(np.uint8)
    if opaque:
        array[:, :, 3] = 255
    return PixelBuffer.fromarray(array)
