"""
PIL IO module.

Conversion between :py:class:`~skin_tools.api.buffer.PixelBuffer` and
Pillow images, plus decoding of the encoded images found in editor
documents (raw bytes or ``data:`` URLs).
"""

import base64
import io
import logging
from typing import Union

import numpy as np
from PIL import Image

from skin_tools.api.buffer import PixelBuffer, check_size
from skin_tools.exceptions import DecodeFailure

logger = logging.getLogger(__name__)


def topil(buffer: PixelBuffer) -> Image.Image:
    """Convert to an RGBA PIL Image."""
    return Image.fromarray(np.ascontiguousarray(buffer.array), "RGBA")


def frompil(image: Image.Image) -> PixelBuffer:
    """Convert a PIL Image of any mode to a buffer."""
    if image.mode != "RGBA":
        logger.debug("Convert %s to RGBA" % image.mode)
        image = image.convert("RGBA")
    return PixelBuffer.fromarray(np.asarray(image, dtype=np.uint8))


def _payload(data: Union[bytes, str]) -> bytes:
    if isinstance(data, bytes):
        return data
    text = data.strip()
    if text.startswith("data:"):
        header, _, encoded = text.partition(",")
        if not header.endswith(";base64"):
            raise DecodeFailure("Only base64 data URLs are supported")
        text = encoded
    return base64.b64decode(text, validate=False)


def decode(data: Union[bytes, str]) -> PixelBuffer:
    """
    Decode PNG, JPEG or any Pillow-readable image.

    :param data: encoded bytes, a base64 string or a ``data:`` URL.
    :raise DecodeFailure: the data could not be decoded.
    """
    try:
        payload = _payload(data)
        with Image.open(io.BytesIO(payload)) as image:
            image.load()
            return frompil(image)
    except DecodeFailure:
        raise
    except (OSError, ValueError, SyntaxError) as e:
        raise DecodeFailure("Cannot decode image: %s" % e, cause=e) from e


def encode(buffer: PixelBuffer, format: str = "PNG") -> bytes:
    """Encode a buffer, PNG by default."""
    with io.BytesIO() as f:
        image = topil(buffer)
        if format.upper() in ("JPEG", "JPG"):
            image = image.convert("RGB")
        image.save(f, format=format)
        return f.getvalue()


def resize(buffer: PixelBuffer, width: int, height: int) -> PixelBuffer:
    """Bilinear resize with premultiplied alpha."""
    width, height = check_size(width, height)
    if buffer.size == (width, height):
        return buffer
    logger.debug("Resize %dx%d to %dx%d" % (buffer.width, buffer.height, width, height))
    image = topil(buffer).convert("RGBa")
    image = image.resize((width, height), Image.BILINEAR).convert("RGBA")
    return frompil(image)
