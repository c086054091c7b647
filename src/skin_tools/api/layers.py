"""
Layer model.

A layer stack is a list of :py:class:`Layer` values ordered top to bottom.
Groups do not own their children: they list child ids that are resolved
against a :py:class:`LayerTable`, so a group may reference layers declared
anywhere in the document.

Example::

    from skin_tools.api.buffer import PixelBuffer
    from skin_tools.api.layers import Layer, LayerTable

    background = Layer('bg', content=PixelBuffer.new(64, 64, (0, 0, 0, 255)))
    group = Layer('g', children=('a', 'b'), blend_mode='multiply')
    table = LayerTable([background, group, ...])
"""

import logging
import math
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import numpy as np
from attrs import define, field

from skin_tools.api.buffer import PixelBuffer
from skin_tools.api.color import ColorRamp, parse_color, parse_rgba, to_ramp
from skin_tools.constants import (
    BlendMode,
    EffectType,
    GeneratorType,
    GradientType,
    ShapeType,
    StrokePosition,
    TextAlign,
)
from skin_tools.exceptions import UnsupportedParameterCombination
from skin_tools.validators import clamp, clamp_int, enum_of, finite, in_

logger = logging.getLogger(__name__)

LayerId = Union[str, int]
Point = Tuple[float, float]


def _optional(converter):
    def wrapper(value):
        return None if value is None else converter(value)

    return wrapper


def _to_points(value: Any) -> Tuple[Point, ...]:
    points = []
    for item in value or ():
        if isinstance(item, dict):
            points.append((finite(item["x"]), finite(item["y"])))
        else:
            x, y = item
            points.append((finite(x), finite(y)))
    return tuple(points)


def _to_floats(value: Any) -> Tuple[float, ...]:
    return tuple(max(0.0, finite(v)) for v in (value or ()))


@define(frozen=True)
class Transform2D:
    """
    Affine placement of a layer.

    The box ``(x, y, width, height)`` is where raster content is drawn. The
    matrix rotates and scales around the box's own center and then shears:
    ``T(c) . R . S . T(-c) . K`` with ``c = (x + width/2, y + height/2)``.

    A zero ``width`` or ``height`` means the natural size of the content.
    """

    x: float = field(default=0.0, converter=finite)
    y: float = field(default=0.0, converter=finite)
    width: float = field(default=0.0, converter=clamp(0.0))
    height: float = field(default=0.0, converter=clamp(0.0))
    rotation: float = field(default=0.0, converter=finite)
    scale_x: float = field(default=1.0, converter=finite)
    scale_y: float = field(default=1.0, converter=finite)
    skew_x: float = field(default=0.0, converter=clamp(-89.0, 89.0))
    skew_y: float = field(default=0.0, converter=clamp(-89.0, 89.0))

    @property
    def center(self) -> Point:
        return self.x + self.width / 2.0, self.y + self.height / 2.0

    def matrix(self) -> np.ndarray:
        """3x3 matrix mapping layer space to canvas space."""
        cx, cy = self.center
        theta = math.radians(self.rotation)
        cos, sin = math.cos(theta), math.sin(theta)
        translate = np.array([[1, 0, cx], [0, 1, cy], [0, 0, 1]], dtype=np.float64)
        rotate = np.array([[cos, -sin, 0], [sin, cos, 0], [0, 0, 1]], dtype=np.float64)
        scale = np.diag([self.scale_x, self.scale_y, 1.0])
        back = np.array([[1, 0, -cx], [0, 1, -cy], [0, 0, 1]], dtype=np.float64)
        shear = np.array(
            [
                [1, math.tan(math.radians(self.skew_x)), 0],
                [math.tan(math.radians(self.skew_y)), 1, 0],
                [0, 0, 1],
            ],
            dtype=np.float64,
        )
        return translate @ rotate @ scale @ back @ shear

    def is_identity(self) -> bool:
        return bool(np.allclose(self.matrix(), np.eye(3)))


@define(frozen=True)
class EncodedImage:
    """Compressed image bytes or a ``data:`` URL, decoded at paint time."""

    data: Union[bytes, str] = field(repr=False)


@define(frozen=True)
class Mask:
    """
    Grayscale layer mask.

    Content alpha is multiplied by the mask luminance, or by its complement
    when ``inverted``. A mask of a different size is stretched to the canvas.
    Encoded masks are decoded by :py:meth:`luminance`.
    """

    buffer: Union[PixelBuffer, EncodedImage] = field()
    inverted: bool = field(default=False, converter=bool)
    enabled: bool = field(default=True, converter=bool)

    def luminance(self, width: int, height: int) -> np.ndarray:
        """
        Mask values in [0, 1] with shape ``(height, width, 1)``.

        :raise DecodeFailure: an encoded mask could not be decoded.
        """
        from skin_tools.api import pil_io

        buffer = self.buffer
        if isinstance(buffer, EncodedImage):
            buffer = pil_io.decode(buffer.data)
        if buffer.size != (width, height):
            buffer = pil_io.resize(buffer, width, height)
        L = buffer.numpy("luminance")
        return 1.0 - L if self.inverted else L


@define(frozen=True)
class Gradient:
    """Gradient paint for shapes and text."""

    stops: ColorRamp = field(converter=to_ramp)
    gradient_type: GradientType = field(
        default=GradientType.LINEAR,
        converter=enum_of(GradientType, GradientType.LINEAR),
    )
    angle: float = field(default=0.0, converter=finite)
    scale: float = field(default=1.0, converter=clamp(0.01))
    reverse: bool = field(default=False, converter=bool)


@define(frozen=True)
class Stroke:
    color: Tuple[int, int, int] = field(default="#000000", converter=parse_color)
    width: float = field(default=1.0, converter=clamp(0.0))
    dash_array: Tuple[float, ...] = field(default=(), converter=_to_floats)


@define(frozen=True)
class Shadow:
    color: Tuple[int, int, int, int] = field(default="#000000", converter=parse_rgba)
    offset_x: float = field(default=2.0, converter=finite)
    offset_y: float = field(default=2.0, converter=finite)
    blur: float = field(default=4.0, converter=clamp(0.0))


@define(frozen=True)
class TextSpec:
    """
    Text content, laid out line by line around the canvas middle.

    Lines are split on newlines and advance by ``font_size * line_height``.
    """

    text: str = field(converter=str)
    font_family: str = field(default="sans-serif")
    font_size: float = field(default=48.0, converter=clamp(1.0, 2000.0))
    font_weight: Union[int, str] = field(default=400)
    font_style: str = field(default="normal", validator=in_(("normal", "italic")))
    align: TextAlign = field(
        default=TextAlign.CENTER, converter=enum_of(TextAlign, TextAlign.CENTER)
    )
    line_height: float = field(default=1.2, converter=clamp(0.1, 10.0))
    letter_spacing: float = field(default=0.0, converter=finite)
    color: Tuple[int, int, int] = field(default="#ffffff", converter=parse_color)
    stroke: Optional[Stroke] = field(default=None)
    shadow: Optional[Shadow] = field(default=None)
    gradient: Optional[Gradient] = field(default=None)


@define(frozen=True)
class ShapeSpec:
    """
    Vector primitive.

    Primitives without explicit ``points`` are sized from the canvas: with
    ``d = 0.4 * min(width, height)`` a rectangle is ``2d x d``, an ellipse
    has radii ``d`` and ``0.6 d``, polygons and stars have outer radius
    ``d`` unless ``outer_radius`` is given.
    """

    shape_type: ShapeType = field(converter=enum_of(ShapeType, ShapeType.RECTANGLE))
    fill: Optional[Tuple[int, int, int]] = field(
        default="#ffffff", converter=_optional(parse_color)
    )
    gradient: Optional[Gradient] = field(default=None)
    stroke: Optional[Stroke] = field(default=None)
    corner_radius: float = field(default=0.0, converter=clamp(0.0))
    points: Tuple[Point, ...] = field(default=(), converter=_to_points)
    sides: int = field(default=6, converter=clamp_int(3, 256))
    star_points: int = field(default=5, converter=clamp_int(2, 256))
    inner_radius: Optional[float] = field(default=None, converter=_optional(clamp(0.0)))
    outer_radius: Optional[float] = field(default=None, converter=_optional(clamp(0.0)))
    closed: bool = field(default=False, converter=bool)


@define(frozen=True)
class GeneratorSpec:
    """Procedural content rendered at canvas size."""

    generator_type: GeneratorType = field(converter=GeneratorType)
    params: Dict[str, Any] = field(factory=dict)


@define(frozen=True)
class LayerEffect:
    """
    Non-destructive layer effect.

    ``distance`` and ``angle`` (degrees) offset shadows, ``size`` is the blur
    or stroke width in pixels and ``spread`` in [0, 1] hardens the edge.
    """

    effect_type: EffectType = field(converter=EffectType)
    enabled: bool = field(default=True, converter=bool)
    blend_mode: BlendMode = field(default=BlendMode.NORMAL, converter=BlendMode.parse)
    opacity: int = field(default=100, converter=clamp_int(0, 100))
    color: Tuple[int, int, int] = field(default="#000000", converter=parse_color)
    distance: float = field(default=5.0, converter=clamp(0.0))
    angle: float = field(default=120.0, converter=finite)
    size: float = field(default=5.0, converter=clamp(0.0, 250.0))
    spread: float = field(default=0.0, converter=clamp(0.0, 1.0))
    position: StrokePosition = field(
        default=StrokePosition.OUTSIDE,
        converter=enum_of(StrokePosition, StrokePosition.OUTSIDE),
    )


Content = Union[PixelBuffer, EncodedImage, TextSpec, ShapeSpec, GeneratorSpec]


@define
class Layer:
    """
    One entry of the layer stack.

    A layer carries either ``content`` or, for a group, ``children`` ids;
    never both.

    .. py:attribute:: opacity

        Integer percent in [0, 100]; other values are clamped.
    """

    id: LayerId = field()
    name: str = field(default="")
    visible: bool = field(default=True, converter=bool)
    opacity: int = field(default=100, converter=clamp_int(0, 100))
    blend_mode: BlendMode = field(default=BlendMode.NORMAL, converter=BlendMode.parse)
    transform: Optional[Transform2D] = field(default=None)
    mask: Optional[Mask] = field(default=None)
    effects: Tuple[LayerEffect, ...] = field(default=(), converter=tuple)
    content: Optional[Content] = field(default=None)
    children: Optional[Tuple[LayerId, ...]] = field(
        default=None, converter=_optional(tuple)
    )

    def __attrs_post_init__(self) -> None:
        if self.content is not None and self.children is not None:
            raise UnsupportedParameterCombination(
                "Group layer %r cannot carry content" % (self.id,)
            )

    @property
    def is_group(self) -> bool:
        return self.children is not None

    @property
    def kind(self) -> str:
        """Short name of the content kind, for logging."""
        if self.is_group:
            return "group"
        if self.content is None:
            return "empty"
        return {
            PixelBuffer: "raster",
            EncodedImage: "raster",
            TextSpec: "text",
            ShapeSpec: "shape",
            GeneratorSpec: "generator",
        }.get(type(self.content), type(self.content).__name__)

    def __repr__(self) -> str:
        return "%s(%r, %s, name=%r)" % (
            self.__class__.__name__,
            self.id,
            self.kind,
            self.name,
        )


class LayerTable(object):
    """
    Read-only id to layer lookup.

    The table owns no hierarchy: groups reference children by id and the
    compositor resolves them here.
    """

    def __init__(self, layers: Iterable[Layer] = ()):
        self._layers: Dict[LayerId, Layer] = {}
        for layer in layers:
            if layer.id in self._layers:
                logger.warning("Duplicate layer id %r" % (layer.id,))
            self._layers[layer.id] = layer

    def get(self, layer_id: LayerId) -> Optional[Layer]:
        return self._layers.get(layer_id)

    def __getitem__(self, layer_id: LayerId) -> Layer:
        return self._layers[layer_id]

    def __contains__(self, layer_id: object) -> bool:
        return layer_id in self._layers

    def __iter__(self) -> Iterator[Layer]:
        return iter(self._layers.values())

    def __len__(self) -> int:
        return len(self._layers)

    def children(self, group: Layer) -> List[Optional[Layer]]:
        """Resolve the children of a group; unknown ids give ``None``."""
        return [self._layers.get(child) for child in group.children or ()]
