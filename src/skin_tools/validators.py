"""
Validators and converters for attrs fields.

Parameters coming from the editor are clamped rather than rejected; only
values without a safe default (NaN, infinity) raise
:py:class:`~skin_tools.exceptions.OutOfRangeParameter`.
"""

import logging
import math
from typing import Any, Callable, Optional

from attrs.validators import in_

from skin_tools.exceptions import OutOfRangeParameter

logger = logging.getLogger(__name__)

__all__ = ["in_", "clamp", "clamp_int", "finite", "integer", "enum_of"]


def finite(value: Any) -> float:
    """Convert to float, rejecting NaN and infinity."""
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise OutOfRangeParameter("Not a number: %r" % (value,)) from e
    if not math.isfinite(number):
        raise OutOfRangeParameter("Not a finite number: %r" % (value,))
    return number


def integer(value: Any) -> int:
    """Convert to int, e.g. a seed; floats are truncated toward zero."""
    if isinstance(value, int):
        return int(value)
    return int(finite(value))


def clamp(
    minimum: Optional[float] = None, maximum: Optional[float] = None
) -> Callable[[Any], float]:
    """
    A converter that clamps a number into [minimum, maximum].

    Either bound may be ``None`` for a half-open range.
    """

    def converter(value: Any) -> float:
        number = finite(value)
        clamped = number
        if minimum is not None:
            clamped = max(minimum, clamped)
        if maximum is not None:
            clamped = min(maximum, clamped)
        if clamped != number:
            logger.debug("Clamped %g to %g" % (number, clamped))
        return clamped

    return converter


def clamp_int(
    minimum: Optional[int] = None, maximum: Optional[int] = None
) -> Callable[[Any], int]:
    """Like :py:func:`clamp`, rounding to the nearest integer."""
    to_float = clamp(minimum, maximum)

    def converter(value: Any) -> int:
        return int(math.floor(to_float(value) + 0.5))

    return converter


def enum_of(enum_type: Any, default: Any) -> Callable[[Any], Any]:
    """A converter that parses an enum value, falling back to ``default``."""

    def converter(value: Any) -> Any:
        if isinstance(value, enum_type):
            return value
        try:
            return enum_type(str(value).lower())
        except ValueError:
            logger.warning(
                "Unknown %s %r, using %s" % (enum_type.__name__, value, default.value)
            )
            return default

    return converter
