"""Composite implementation for layer rendering and blending."""

import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple, Union

import attrs
import numpy as np
from attrs import define, field
from PIL import Image

from skin_tools.api import pil_io
from skin_tools.api.buffer import PixelBuffer, check_size
from skin_tools.api.color import parse_rgba, to_float
from skin_tools.api.layers import (
    EncodedImage,
    GeneratorSpec,
    Layer,
    LayerId,
    LayerTable,
    ShapeSpec,
    TextSpec,
    Transform2D,
)
from skin_tools.composite import effects, text, utils, vector
from skin_tools.composite.blend import blend_over
from skin_tools.constants import BlendMode
from skin_tools.exceptions import Cancelled, DecodeFailure

logger = logging.getLogger(__name__)

Lookup = Union[LayerTable, Mapping[LayerId, Layer], Iterable[Layer], None]


@define(frozen=True)
class CompositeResult:
    """
    Result of :py:func:`composite`.

    .. py:attribute:: buffer

        Flattened :py:class:`~skin_tools.api.buffer.PixelBuffer`.

    .. py:attribute:: warnings

        :py:class:`~skin_tools.exceptions.DecodeFailure` for every layer that
        was skipped because its content could not be materialized.
    """

    buffer: PixelBuffer = field()
    warnings: Tuple[DecodeFailure, ...] = field(factory=tuple, converter=tuple)

    def topil(self) -> Image.Image:
        return pil_io.topil(self.buffer)


def composite_pil(
    layers: Iterable[Layer], width: int, height: int, **kwargs: Any
) -> Image.Image:
    """
    Composite layers and return a PIL Image.

    Accepts the same keyword arguments as :py:func:`composite`; warnings are
    logged and otherwise dropped.
    """
    return composite(layers, width, height, **kwargs).topil()


def composite(
    layers: Iterable[Layer],
    width: int,
    height: int,
    lookup: Lookup = None,
    background: Any = None,
    cancel: Optional[Callable[[], bool]] = None,
    fonts: Optional[text.FontProvider] = None,
) -> CompositeResult:
    """
    Composite a layer stack into a single buffer.

    :param layers: layers ordered top to bottom; the last one is painted
        first.
    :param width: canvas width in pixels.
    :param height: canvas height in pixels.
    :param lookup: table resolving group children. A
        :py:class:`~skin_tools.api.layers.LayerTable`, a mapping of ids to
        layers or an iterable of layers. Defaults to ``layers`` itself.
    :param background: optional backdrop color, e.g. ``'#202020'``.
    :param cancel: callable returning ``True``, or an object with an
        ``is_set()`` method such as :py:class:`threading.Event`. Checked once
        per layer.
    :param fonts: :py:class:`~skin_tools.composite.text.FontProvider` for
        text layers.
    :return: :py:class:`CompositeResult`.
    :raise Cancelled: ``cancel`` was set during the pass.

    Example::

        from skin_tools.composite import composite

        result = composite(layers, 512, 512, background='#000000')
        result.buffer.tobytes()
    """
    width, height = check_size(width, height)
    layers = list(layers)
    table = _as_table(lookup, layers)

    color: Union[float, np.ndarray] = 0.0
    alpha = 0.0
    if background is not None:
        rgba = parse_rgba(background)
        color, alpha = to_float(rgba[:3]), rgba[3] / 255.0

    compositor = Compositor(
        width, height, color, alpha, table=table, fonts=fonts, cancel=cancel
    )
    for layer in reversed(layers):
        compositor.apply(layer)
    color, alpha = compositor.finish()
    return CompositeResult(PixelBuffer.fromfloat(color, alpha), compositor.warnings)


def _as_table(lookup: Lookup, layers: List[Layer]) -> LayerTable:
    if lookup is None:
        return LayerTable(layers)
    if isinstance(lookup, LayerTable):
        return lookup
    if isinstance(lookup, Mapping):
        return LayerTable(lookup.values())
    return LayerTable(lookup)


def _is_cancelled(cancel: Any) -> bool:
    if cancel is None:
        return False
    if hasattr(cancel, "is_set"):
        return bool(cancel.is_set())
    return bool(cancel())


class Compositor(object):
    """Composite context.

    Layers are applied bottom to top; group children are flattened by a
    nested compositor sharing the same table, font provider and warnings.

    Example::

        compositor = Compositor(width, height, table=table)
        for layer in reversed(layers):
            compositor.apply(layer)
        color, alpha = compositor.finish()
    """

    def __init__(
        self,
        width: int,
        height: int,
        color: Union[float, Tuple[float, ...], np.ndarray] = 0.0,
        alpha: float = 0.0,
        table: Optional[LayerTable] = None,
        fonts: Optional[text.FontProvider] = None,
        cancel: Any = None,
        warnings: Optional[List[DecodeFailure]] = None,
        ancestors: Tuple[LayerId, ...] = (),
    ):
        self._width, self._height = check_size(width, height)
        self._table = table if table is not None else LayerTable()
        self._fonts = fonts
        self._cancel = cancel
        self._warnings = warnings if warnings is not None else []
        self._ancestors = ancestors

        self._color = np.empty((self.height, self.width, 3), dtype=np.float32)
        self._color[:, :] = color
        self._alpha = np.full((self.height, self.width, 1), alpha, dtype=np.float32)

    def apply(self, layer: Layer) -> None:
        if _is_cancelled(self._cancel):
            raise Cancelled("Compositing cancelled at layer %r" % (layer.id,))

        logger.debug("Compositing %s" % layer)
        if not layer.visible:
            logger.debug("Ignore invisible %s" % layer)
            return

        if layer.is_group:
            color, alpha = self._get_group(layer)
        else:
            try:
                source = self._get_object(layer)
            except DecodeFailure as e:
                if e.layer_id is None:
                    e.layer_id = layer.id
                self._warn(e)
                return
            except Exception as e:
                self._warn(
                    DecodeFailure(
                        "Cannot render %s content: %s" % (layer.kind, e),
                        layer_id=layer.id,
                        cause=e,
                    )
                )
                return
            if source is None:
                logger.debug("Ignore empty %s" % layer)
                return
            color, alpha = source

        if layer.effects:
            color, alpha = effects.apply_effects(layer.effects, color, alpha)

        # Apply masks and opacity.
        alpha = alpha * self._get_mask(layer) * (layer.opacity / 100.0)
        self._apply_source(color, alpha, layer.blend_mode)

    def _apply_source(
        self, color: np.ndarray, alpha: np.ndarray, blend_mode: BlendMode
    ) -> None:
        self._color, self._alpha = blend_over(
            self._color, self._alpha, color, alpha, blend_mode
        )

    def finish(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.color, self.alpha

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def warnings(self) -> List[DecodeFailure]:
        return self._warnings

    @property
    def color(self) -> np.ndarray:
        """Straight color; fully transparent pixels are black."""
        color = np.array(self._color, dtype=np.float32)
        color[np.repeat(self._alpha, 3, axis=2) <= 0] = 0.0
        return color

    @property
    def alpha(self) -> np.ndarray:
        return utils.clip(self._alpha)

    def _warn(self, failure: DecodeFailure, action: str = "Skipping layer") -> None:
        logger.warning("%s: %s" % (action, failure))
        self._warnings.append(failure)

    def _get_group(self, layer: Layer) -> Tuple[np.ndarray, np.ndarray]:
        if layer.transform is not None:
            logger.debug("Ignore transform of group %r" % (layer.id,))
        ancestors = self._ancestors + (layer.id,)
        compositor = Compositor(
            self.width,
            self.height,
            table=self._table,
            fonts=self._fonts,
            cancel=self._cancel,
            warnings=self._warnings,
            ancestors=ancestors,
        )
        children = []
        for child_id in layer.children or ():
            if child_id in ancestors:
                self._warn(
                    DecodeFailure("Group reference cycle at %r" % (child_id,), layer.id)
                )
                continue
            child = self._table.get(child_id)
            if child is None:
                self._warn(DecodeFailure("Missing child %r" % (child_id,), layer.id))
                continue
            children.append(child)

        for child in reversed(children):
            compositor.apply(child)
        return compositor.finish()

    def _get_object(self, layer: Layer) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        content = layer.content
        if content is None:
            return None
        if isinstance(content, (PixelBuffer, EncodedImage)):
            return self._get_raster(content, layer.transform)

        if isinstance(content, TextSpec):
            color, alpha = text.draw_text(content, self.width, self.height, self._fonts)
        elif isinstance(content, ShapeSpec):
            color, alpha = vector.draw_shape(content, self.width, self.height)
        elif isinstance(content, GeneratorSpec):
            from skin_tools.synth.generators import generate

            buffer = generate(
                content.generator_type, content.params, self.width, self.height
            )
            color, alpha = buffer.numpy("color"), buffer.numpy("alpha")
        else:
            raise DecodeFailure(
                "Unsupported content %s" % type(content).__name__, layer.id
            )

        transform = layer.transform
        if transform is None:
            return color, alpha
        transform = attrs.evolve(
            transform,
            width=transform.width or self.width,
            height=transform.height or self.height,
        )
        return self._warp(color, alpha, transform.matrix())

    def _get_raster(
        self,
        content: Union[PixelBuffer, EncodedImage],
        transform: Optional[Transform2D],
    ) -> Tuple[np.ndarray, np.ndarray]:
        buffer = pil_io.decode(content.data) if isinstance(content, EncodedImage) else content
        color, alpha = buffer.numpy("color"), buffer.numpy("alpha")

        # Raster content is scaled into its box, the canvas by default.
        if transform is None:
            transform = Transform2D(width=self.width, height=self.height)
        transform = attrs.evolve(
            transform,
            width=transform.width or buffer.width,
            height=transform.height or buffer.height,
        )
        placement = np.array(
            [
                [transform.width / buffer.width, 0.0, transform.x],
                [0.0, transform.height / buffer.height, transform.y],
                [0.0, 0.0, 1.0],
            ],
            dtype=np.float64,
        )
        matrix = transform.matrix() @ placement
        if buffer.size == (self.width, self.height) and utils.is_identity(matrix):
            return color, alpha
        return self._warp(color, alpha, matrix)

    def _warp(
        self, color: np.ndarray, alpha: np.ndarray, matrix: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        if utils.is_identity(matrix) and alpha.shape[:2] == (self.height, self.width):
            return color, alpha
        rgba = utils.warp(utils.premultiply(color, alpha), matrix, self.width, self.height)
        return utils.unpremultiply(rgba)

    def _get_mask(self, layer: Layer) -> Union[float, np.ndarray]:
        mask = layer.mask
        if mask is None or not mask.enabled:
            return 1.0
        try:
            return mask.luminance(self.width, self.height)
        except DecodeFailure as e:
            failure = DecodeFailure(
                "Cannot decode mask: %s" % e, layer_id=layer.id, cause=e
            )
            self._warn(failure, action="Ignoring mask")
            return 1.0
