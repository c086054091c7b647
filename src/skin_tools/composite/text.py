"""
Text rendering.

Font lookup and glyph shaping are delegated to a :py:class:`FontProvider`;
the default one uses Pillow's FreeType bindings. Layout is simple: lines are
split on newlines, stacked ``font_size * line_height`` apart and centered
vertically on the canvas. Horizontal anchors are 20 pixels from the left
edge, the middle, or 20 pixels from the right edge.
"""

import logging
from typing import Dict, Optional, Protocol, Tuple, Union

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from skin_tools.api.color import to_float
from skin_tools.api.layers import TextSpec
from skin_tools.composite import paint, utils
from skin_tools.constants import TextAlign

logger = logging.getLogger(__name__)

MARGIN = 20

FontType = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

_ANCHORS = {
    TextAlign.LEFT: "lm",
    TextAlign.CENTER: "mm",
    TextAlign.RIGHT: "rm",
}


class FontProvider(Protocol):
    """Resolves a font description to a Pillow font."""

    def get_font(
        self,
        family: str,
        size: float,
        weight: Union[int, str] = 400,
        style: str = "normal",
    ) -> FontType: ...


class PillowFontProvider(object):
    """
    Font provider backed by Pillow.

    :param fonts: optional mapping of family name to a font file path.
        Unknown families are tried as font file names, then fall back to
        Pillow's bundled font.
    """

    def __init__(self, fonts: Optional[Dict[str, str]] = None):
        self._fonts = dict(fonts or {})
        self._cache: Dict[Tuple[str, float], FontType] = {}

    def get_font(self, family, size, weight=400, style="normal"):
        key = (family, float(size))
        if key not in self._cache:
            self._cache[key] = self._load(family, size)
        return self._cache[key]

    def _load(self, family: str, size: float) -> FontType:
        path = self._fonts.get(family, family)
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            logger.debug("Font %r not found, using the default font" % family)
            return ImageFont.load_default(size)


DEFAULT_FONT_PROVIDER = PillowFontProvider()


def draw_text(
    spec: TextSpec,
    width: int,
    height: int,
    fonts: Optional[FontProvider] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Draw a text layer.

    Paint order is shadow, then stroke, then fill, so the stroke sits under
    the glyph fill.

    :return: straight color ``(h, w, 3)`` and alpha ``(h, w, 1)``.
    """
    fonts = fonts or DEFAULT_FONT_PROVIDER
    font = fonts.get_font(
        spec.font_family, spec.font_size, spec.font_weight, spec.font_style
    )

    fill_mask = Image.new("L", (width, height), 0)
    stroke_mask = None
    stroke_width = 0
    if spec.stroke is not None and spec.stroke.width > 0:
        stroke_mask = Image.new("L", (width, height), 0)
        stroke_width = max(1, int(round(spec.stroke.width / 2.0)))

    lines = spec.text.split("\n")
    line_height = spec.font_size * spec.line_height
    top = (height - len(lines) * line_height) / 2.0
    x = {
        TextAlign.LEFT: MARGIN,
        TextAlign.CENTER: width / 2.0,
        TextAlign.RIGHT: width - MARGIN,
    }[spec.align]

    for i, line in enumerate(lines):
        y = top + (i + 0.5) * line_height
        if stroke_mask is not None:
            _draw_line(stroke_mask, line, x, y, font, spec, stroke_width)
        _draw_line(fill_mask, line, x, y, font, spec, 0)

    fill_alpha = _to_array(fill_mask)
    color = np.zeros((height, width, 3), dtype=np.float32)
    alpha = np.zeros((height, width, 1), dtype=np.float32)

    if spec.shadow is not None:
        coverage = fill_alpha if stroke_mask is None else _to_array(stroke_mask)
        shadow_color, shadow_alpha = _draw_shadow(coverage, spec.shadow)
        color, alpha = utils.over(color, alpha, shadow_color, shadow_alpha)

    if stroke_mask is not None:
        stroke_color = paint.draw_solid_color_fill(spec.stroke.color, width, height)
        color, alpha = utils.over(color, alpha, stroke_color, _to_array(stroke_mask))

    if spec.gradient is not None:
        fill_color = paint.draw_gradient_fill(spec.gradient, width, height)
    else:
        fill_color = paint.draw_solid_color_fill(spec.color, width, height)
    return utils.over(color, alpha, fill_color, fill_alpha)


def _draw_line(
    mask: Image.Image,
    line: str,
    x: float,
    y: float,
    font: FontType,
    spec: TextSpec,
    stroke_width: int,
) -> None:
    if not line:
        return
    draw = ImageDraw.Draw(mask)
    if not spec.letter_spacing:
        draw.text(
            (x, y),
            line,
            fill=255,
            font=font,
            anchor=_ANCHORS[spec.align],
            stroke_width=stroke_width,
            stroke_fill=255,
        )
        return

    # Place glyphs one by one to apply letter spacing.
    advances = [font.getlength(char) for char in line]
    total = sum(advances) + spec.letter_spacing * max(0, len(line) - 1)
    if spec.align == TextAlign.CENTER:
        x -= total / 2.0
    elif spec.align == TextAlign.RIGHT:
        x -= total
    for char, advance in zip(line, advances):
        draw.text(
            (x, y),
            char,
            fill=255,
            font=font,
            anchor="lm",
            stroke_width=stroke_width,
            stroke_fill=255,
        )
        x += advance + spec.letter_spacing


def _draw_shadow(coverage: np.ndarray, shadow) -> Tuple[np.ndarray, np.ndarray]:
    from scipy import ndimage  # type: ignore[import-untyped]

    plane = ndimage.shift(
        coverage[:, :, 0], (shadow.offset_y, shadow.offset_x), order=1, cval=0.0
    )
    if shadow.blur > 0:
        plane = ndimage.gaussian_filter(plane, sigma=shadow.blur / 2.0)
    alpha = utils.clip(plane[:, :, np.newaxis] * (shadow.color[3] / 255.0))
    color = np.empty(alpha.shape[:2] + (3,), dtype=np.float32)
    color[:, :] = to_float(shadow.color)
    return color, alpha.astype(np.float32)


def _to_array(mask: Image.Image) -> np.ndarray:
    return np.expand_dims(np.asarray(mask, dtype=np.float32) / 255.0, 2)
