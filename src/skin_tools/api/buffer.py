"""
Pixel buffer.

:py:class:`PixelBuffer` is the only image representation that crosses module
boundaries: a row-major RGBA ``uint8`` array with straight (non-premultiplied)
alpha. Buffers are immutable; the backing array is marked read-only and every
operation in the package returns a new buffer.

Internally, pixel math happens on float32 arrays in ``[0, 1]`` shaped
``(height, width, channels)``, the same layout the compositor uses.
"""

import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from attrs import define, field

from skin_tools.exceptions import InvalidBufferDimensions

logger = logging.getLogger(__name__)

CHANNELS = 4


def quantize(values: np.ndarray) -> np.ndarray:
    """Map floats in [0, 1] to bytes, rounding half up."""
    return np.floor(np.clip(values, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)


def check_size(width: int, height: int) -> Tuple[int, int]:
    try:
        width, height = int(width), int(height)
    except (TypeError, ValueError) as e:
        raise InvalidBufferDimensions(
            "Invalid dimensions: %r x %r" % (width, height)
        ) from e
    if width < 1 or height < 1:
        raise InvalidBufferDimensions("Invalid dimensions: %d x %d" % (width, height))
    return width, height


@define(eq=False, repr=False)
class PixelBuffer:
    """
    Immutable RGBA image.

    Example::

        from skin_tools.api.buffer import PixelBuffer

        buffer = PixelBuffer.new(64, 64, (255, 0, 0, 255))
        data = buffer.tobytes()
        assert len(data) == 64 * 64 * 4

    .. py:attribute:: width
    .. py:attribute:: height
    .. py:attribute:: array

        Read-only ``uint8`` array of shape ``(height, width, 4)``.
    """

    width: int = field()
    height: int = field()
    array: np.ndarray = field()

    def __attrs_post_init__(self) -> None:
        self.width, self.height = check_size(self.width, self.height)
        array = self.array
        if isinstance(array, (bytes, bytearray, memoryview)):
            array = np.frombuffer(bytes(array), dtype=np.uint8)
        array = np.asarray(array)
        expected = self.width * self.height * CHANNELS
        if array.size != expected:
            raise InvalidBufferDimensions(
                "Expected %d bytes for %d x %d, got %d"
                % (expected, self.width, self.height, array.size)
            )
        if array.dtype != np.uint8:
            raise InvalidBufferDimensions("Expected uint8 data, got %s" % array.dtype)
        array = np.array(array, dtype=np.uint8, copy=True).reshape(
            (self.height, self.width, CHANNELS)
        )
        array.setflags(write=False)
        self.array = array

    @classmethod
    def new(
        cls,
        width: int,
        height: int,
        color: Sequence[int] = (0, 0, 0, 0),
    ) -> "PixelBuffer":
        """Create a buffer filled with a single RGBA color."""
        width, height = check_size(width, height)
        fill = tuple(color) + (255,) * (CHANNELS - len(color))
        array = np.empty((height, width, CHANNELS), dtype=np.uint8)
        array[:, :] = np.array(fill[:CHANNELS], dtype=np.uint8)
        return cls(width, height, array)

    @classmethod
    def frombytes(
        cls, width: int, height: int, data: Union[bytes, bytearray, memoryview]
    ) -> "PixelBuffer":
        """Create a buffer from raw row-major RGBA bytes."""
        return cls(width, height, data)

    @classmethod
    def fromarray(cls, array: np.ndarray) -> "PixelBuffer":
        """
        Create a buffer from an array of shape ``(height, width[, channels])``.

        Integer arrays are taken as bytes, float arrays as values in [0, 1].
        One channel is gray, two gray plus alpha, three RGB, four RGBA;
        missing alpha is opaque.
        """
        array = np.asarray(array)
        if array.ndim == 2:
            array = array[:, :, np.newaxis]
        if array.ndim != 3 or array.shape[2] not in (1, 2, 3, 4):
            raise InvalidBufferDimensions("Unsupported array shape %r" % (array.shape,))
        if array.dtype.kind == "f":
            array = quantize(array)
        else:
            array = np.clip(array, 0, 255).astype(np.uint8)
        channels = array.shape[2]
        if channels in (1, 2):
            array = np.concatenate(
                [np.repeat(array[:, :, :1], 3, axis=2), array[:, :, 1:]], axis=2
            )
        if array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array, alpha], axis=2)
        height, width = array.shape[:2]
        return cls(width, height, array)

    @classmethod
    def fromfloat(
        cls, color: np.ndarray, alpha: Optional[np.ndarray] = None
    ) -> "PixelBuffer":
        """Create a buffer from float color ``(h, w, 3)`` and alpha ``(h, w, 1)``."""
        if color.ndim == 2:
            color = color[:, :, np.newaxis]
        if color.shape[2] == 1:
            color = np.repeat(color, 3, axis=2)
        if alpha is None:
            alpha = np.ones(color.shape[:2] + (1,), dtype=np.float32)
        elif alpha.ndim == 2:
            alpha = alpha[:, :, np.newaxis]
        return cls.fromarray(np.concatenate([color[:, :, :3], alpha], axis=2))

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) tuple."""
        return self.width, self.height

    def tobytes(self) -> bytes:
        """Raw row-major RGBA bytes."""
        return self.array.tobytes()

    def numpy(self, channel: Optional[str] = None) -> np.ndarray:
        """
        Get float32 pixels in [0, 1].

        :param channel: ``None`` for RGBA, ``'color'`` for RGB, ``'alpha'``
            for the alpha channel, ``'luminance'`` for the mean of RGB.
        :return: array of shape ``(height, width, channels)``.
        """
        data = self.array.astype(np.float32) / 255.0
        if channel is None:
            return data
        if channel == "color":
            return data[:, :, :3]
        if channel == "alpha":
            return data[:, :, 3:4]
        if channel == "luminance":
            return np.mean(data[:, :, :3], axis=2, keepdims=True)
        raise ValueError("Unknown channel: %r" % channel)

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, self.array)

    def __len__(self) -> int:
        return self.array.size

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and np.array_equal(self.array, other.array)

    def __hash__(self) -> int:
        return hash((self.width, self.height, self.array.tobytes()))

    def __repr__(self) -> str:
        return "%s(width=%d, height=%d)" % (
            self.__class__.__name__,
            self.width,
            self.height,
        )
