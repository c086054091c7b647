"""
Colors and color ramps.

Colors cross the JSON boundary as ``#rrggbb`` strings and are parsed to
0-255 integer triples. A :py:class:`ColorRamp` maps a scalar field in
[0, 1] to float RGB through linearly interpolated stops.
"""

import logging
from typing import Any, Iterable, List, Sequence, Tuple

import numpy as np
from attrs import define, field

from skin_tools.exceptions import UnsupportedParameterCombination
from skin_tools.validators import clamp

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

FALLBACK_COLOR: RGB = (128, 128, 128)


def parse_rgba(value: Any) -> Tuple[int, int, int, int]:
    """
    Parse ``#rgb``, ``#rrggbb``, ``#rrggbbaa`` or an integer sequence.

    Unparseable values fall back to mid gray.
    """
    if isinstance(value, (tuple, list)) and len(value) in (3, 4):
        channels = [max(0, min(255, int(round(float(v))))) for v in value]
        if len(channels) == 3:
            channels.append(255)
        return tuple(channels)  # type: ignore[return-value]

    text = str(value).strip()
    if text.startswith("#"):
        digits = text[1:]
        if len(digits) in (3, 4):
            digits = "".join(c * 2 for c in digits)
        if len(digits) in (6, 8):
            try:
                channels = [int(digits[i : i + 2], 16) for i in range(0, len(digits), 2)]
            except ValueError:
                channels = []
            if channels:
                if len(channels) == 3:
                    channels.append(255)
                return tuple(channels)  # type: ignore[return-value]

    logger.warning("Invalid color %r, using gray" % (value,))
    return FALLBACK_COLOR + (255,)


def parse_color(value: Any) -> RGB:
    """Parse a color to an RGB triple, see :py:func:`parse_rgba`."""
    return parse_rgba(value)[:3]  # type: ignore[return-value]


def to_hex(color: Sequence[int]) -> str:
    return "#" + "".join("%02x" % int(c) for c in color[:3])


def to_float(color: Sequence[int]) -> np.ndarray:
    """RGB triple to float32 array in [0, 1]."""
    return np.array(color[:3], dtype=np.float32) / 255.0


@define(frozen=True)
class ColorStop:
    """
    Ramp stop.

    .. py:attribute:: position

        Location in [0, 1].

    .. py:attribute:: color

        RGB triple.
    """

    position: float = field(converter=clamp(0.0, 1.0))
    color: RGB = field(converter=parse_color)


def _to_stops(value: Any) -> Tuple[ColorStop, ...]:
    stops = []
    for item in value:
        if isinstance(item, ColorStop):
            stops.append(item)
        elif isinstance(item, dict):
            position = item.get("position", item.get("offset", 0.0))
            stops.append(ColorStop(position, item.get("color", "#000000")))
        else:
            stops.append(ColorStop(*item))
    return tuple(sorted(stops, key=lambda stop: stop.position))


@define(frozen=True)
class ColorRamp:
    """
    Ordered color stops with linear interpolation between bracketing stops.

    Values before the first stop and after the last hold the end colors.
    A ramp needs at least one stop.

    Example::

        ramp = ColorRamp.from_colors(['#000000', '#ffffff'])
        rgb = ramp(np.linspace(0, 1, 5))  # shape (5, 3), floats in [0, 1]
    """

    stops: Tuple[ColorStop, ...] = field(converter=_to_stops)

    @stops.validator
    def _validate_stops(self, attribute: Any, value: Tuple[ColorStop, ...]) -> None:
        if len(value) == 0:
            raise UnsupportedParameterCombination("Color ramp requires at least one stop")

    @classmethod
    def from_colors(cls, colors: Iterable[Any]) -> "ColorRamp":
        """Evenly spaced stops from a list of colors."""
        colors = list(colors)
        if len(colors) == 0:
            raise UnsupportedParameterCombination("Color ramp requires at least one color")
        if len(colors) == 1:
            return cls([ColorStop(0.0, colors[0])])
        step = 1.0 / (len(colors) - 1)
        return cls([ColorStop(i * step, color) for i, color in enumerate(colors)])

    @property
    def colors(self) -> List[RGB]:
        return [stop.color for stop in self.stops]

    def __call__(self, Z: np.ndarray) -> np.ndarray:
        """Map values to float RGB; the result has shape ``Z.shape + (3,)``."""
        from scipy import interpolate  # type: ignore[import-untyped]

        X: List[float] = []
        Y: List[np.ndarray] = []
        for stop in self.stops:
            if len(X) and X[-1] == stop.position:
                logger.debug("Duplicate stop at %g" % stop.position)
                X.pop(), Y.pop()
            X.append(stop.position), Y.append(to_float(stop.color))
        if len(X) == 1:
            X = [0.0, 1.0]
            Y = [Y[0], Y[0]]
        G = interpolate.interp1d(
            X, Y, axis=0, bounds_error=False, fill_value=(Y[0], Y[-1])
        )
        return G(np.asarray(Z, dtype=np.float64)).astype(np.float32)


def _is_stop(item: Any) -> bool:
    if isinstance(item, (ColorStop, dict)):
        return True
    return isinstance(item, tuple) and len(item) == 2 and isinstance(item[1], str)


def to_ramp(value: Any) -> ColorRamp:
    """Converter accepting a ramp, a list of colors or a list of stops."""
    if isinstance(value, ColorRamp):
        return value
    items = list(value)
    if items and all(_is_stop(item) for item in items):
        return ColorRamp(items)
    return ColorRamp.from_colors(items)
