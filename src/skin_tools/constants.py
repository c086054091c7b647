"""
Various constants for skin_tools
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class BlendMode(str, Enum):
    """
    Blend modes.

    Values are the names used at the JSON boundary. The first sixteen modes
    have an exact implementation; the rest are approximated, see
    :py:attr:`BlendMode.resolved`.
    """

    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    DARKEN = "darken"
    LIGHTEN = "lighten"
    COLOR_DODGE = "color-dodge"
    COLOR_BURN = "color-burn"
    HARD_LIGHT = "hard-light"
    SOFT_LIGHT = "soft-light"
    DIFFERENCE = "difference"
    EXCLUSION = "exclusion"
    HUE = "hue"
    SATURATION = "saturation"
    COLOR = "color"
    LUMINOSITY = "luminosity"
    DISSOLVE = "dissolve"
    LINEAR_BURN = "linear-burn"
    LINEAR_DODGE = "linear-dodge"
    VIVID_LIGHT = "vivid-light"
    LINEAR_LIGHT = "linear-light"
    PIN_LIGHT = "pin-light"
    HARD_MIX = "hard-mix"

    @property
    def resolved(self) -> "BlendMode":
        """The mode actually used for blending."""
        return _BLEND_FALLBACK.get(self, self)

    @classmethod
    def parse(cls, value) -> "BlendMode":
        """Parse a boundary name, falling back to :py:attr:`NORMAL`.

        ``source-over`` is accepted as an alias of ``normal``.
        """
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower().replace("_", "-")
        if name in ("source-over", "pass-through"):
            return cls.NORMAL
        try:
            return cls(name)
        except ValueError:
            logger.warning("Unknown blend mode %r, using normal" % (value,))
            return cls.NORMAL


_BLEND_FALLBACK = {
    BlendMode.DISSOLVE: BlendMode.NORMAL,
    BlendMode.LINEAR_BURN: BlendMode.MULTIPLY,
    BlendMode.LINEAR_DODGE: BlendMode.SCREEN,
    BlendMode.VIVID_LIGHT: BlendMode.HARD_LIGHT,
    BlendMode.LINEAR_LIGHT: BlendMode.HARD_LIGHT,
    BlendMode.PIN_LIGHT: BlendMode.OVERLAY,
    BlendMode.HARD_MIX: BlendMode.HARD_LIGHT,
}


class NoiseMode(str, Enum):
    """Fractal sum variants."""

    FBM = "fbm"
    TURBULENCE = "turbulence"
    RIDGED = "ridged"


class NoiseType(str, Enum):
    """Base noise of the ``noise`` generator."""

    PERLIN = "perlin"
    VALUE = "value"
    FBM = "fbm"
    TURBULENCE = "turbulence"
    RIDGED = "ridged"


class GeneratorType(str, Enum):
    """
    Procedural generator catalog.
    """

    NOISE = "noise"
    CLOUDS = "clouds"
    PLASMA = "plasma"
    MARBLE = "marble"
    WOOD = "wood"
    METAL = "metal"
    FABRIC = "fabric"
    LEATHER = "leather"
    CONCRETE = "concrete"
    RUST = "rust"
    DIRT = "dirt"
    GRUNGE = "grunge"
    SCRATCHES = "scratches"
    SPLATTER = "splatter"
    GRADIENT = "gradient"
    PATTERN = "pattern"


class PatternType(str, Enum):
    CHECKER = "checker"
    STRIPES = "stripes"
    DOTS = "dots"


class WeaveType(str, Enum):
    PLAIN = "plain"
    TWILL = "twill"


class GradientType(str, Enum):
    LINEAR = "linear"
    RADIAL = "radial"
    ANGLE = "angle"
    REFLECTED = "reflected"
    DIAMOND = "diamond"


class FilterKind(str, Enum):
    """
    Image filters.
    """

    INVERT = "invert"
    POSTERIZE = "posterize"
    THRESHOLD = "threshold"
    SEPIA = "sepia"
    NOISE = "noise"
    PIXELATE = "pixelate"
    EDGE = "edge"
    EMBOSS = "emboss"
    BLUR = "blur"


class NormalMethod(str, Enum):
    """Gradient operators of the normal map synthesizer."""

    SOBEL = "sobel"
    PREWITT = "prewitt"
    SCHARR = "scharr"


class ShapeType(str, Enum):
    RECTANGLE = "rectangle"
    ELLIPSE = "ellipse"
    POLYGON = "polygon"
    STAR = "star"
    LINE = "line"
    PATH = "path"


class TextAlign(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class EffectType(str, Enum):
    """
    Layer effects.
    """

    DROP_SHADOW = "drop-shadow"
    INNER_SHADOW = "inner-shadow"
    OUTER_GLOW = "outer-glow"
    INNER_GLOW = "inner-glow"
    COLOR_OVERLAY = "color-overlay"
    STROKE = "stroke"


class StrokePosition(str, Enum):
    INSIDE = "inside"
    CENTER = "center"
    OUTSIDE = "outside"


class MaskType(str, Enum):
    """
    Smart mask generators.
    """

    CORNER_RADIUS = "corner-radius"
    BORDER_GRADIENT = "border-gradient"
    VIGNETTE = "vignette"
    RADIAL_GRADIENT = "radial-gradient"
    LINEAR_GRADIENT = "linear-gradient"
    NOISE = "noise"
    PATTERN = "pattern"
    EDGE_DETECT = "edge-detect"
    DISTANCE_FIELD = "distance-field"


class Channel(str, Enum):
    RED = "r"
    GREEN = "g"
    BLUE = "b"
    ALPHA = "a"

    @property
    def index(self) -> int:
        return "rgba".index(self.value)
