import base64
import logging

import pytest
from PIL import Image

from skin_tools.api import pil_io
from skin_tools.api.buffer import PixelBuffer
from skin_tools.exceptions import DecodeFailure

from ..utils import random_buffer

logger = logging.getLogger(__name__)


def test_topil():
    image = pil_io.topil(PixelBuffer.new(3, 2, (1, 2, 3, 4)))
    assert image.mode == "RGBA"
    assert image.size == (3, 2)
    assert image.getpixel((2, 1)) == (1, 2, 3, 4)


@pytest.mark.parametrize(
    "mode, color, expected",
    [
        ("RGBA", (10, 20, 30, 40), (10, 20, 30, 40)),
        ("RGB", (10, 20, 30), (10, 20, 30, 255)),
        ("L", 50, (50, 50, 50, 255)),
        ("LA", (50, 60), (50, 50, 50, 60)),
    ],
)
def test_frompil(mode, color, expected):
    buffer = pil_io.frompil(Image.new(mode, (4, 3), color))
    assert buffer.size == (4, 3)
    assert tuple(buffer.array[0, 0]) == expected


def test_encode_decode_png():
    buffer = random_buffer(5, 7)
    data = pil_io.encode(buffer)
    assert data.startswith(b"\x89PNG")
    assert pil_io.decode(data) == buffer


def test_decode_data_url():
    buffer = PixelBuffer.new(2, 2, (255, 0, 0, 255))
    encoded = base64.b64encode(pil_io.encode(buffer)).decode("ascii")
    assert pil_io.decode("data:image/png;base64," + encoded) == buffer
    assert pil_io.decode(encoded) == buffer


def test_encode_jpeg():
    data = pil_io.encode(PixelBuffer.new(8, 8, (200, 100, 50, 128)), "JPEG")
    decoded = pil_io.decode(data)
    assert decoded.size == (8, 8)
    assert decoded.array[0, 0, 3] == 255


@pytest.mark.parametrize(
    "data",
    [
        b"not an image",
        "data:image/png;base64,AAAA",
        "data:image/png,rawdata",
        b"",
    ],
)
def test_decode_failure(data):
    with pytest.raises(DecodeFailure):
        pil_io.decode(data)


def test_resize():
    buffer = PixelBuffer.new(4, 4, (255, 0, 0, 255))
    resized = pil_io.resize(buffer, 8, 2)
    assert resized.size == (8, 2)
    assert tuple(resized.array[1, 7]) == (255, 0, 0, 255)
    assert pil_io.resize(buffer, 4, 4) is buffer


def test_resize_keeps_transparent_color_out():
    # Opaque red next to transparent green must not bleed green.
    array = PixelBuffer.new(2, 1, (255, 0, 0, 255)).array.copy()
    array[0, 1] = (0, 255, 0, 0)
    resized = pil_io.resize(PixelBuffer.fromarray(array), 4, 1)
    for x in range(4):
        if resized.array[0, x, 3] > 0:
            assert resized.array[0, x, 1] <= 2
