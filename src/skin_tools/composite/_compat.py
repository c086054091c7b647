"""Compatibility module for optional composite dependencies."""

import functools
from typing import Callable, TYPE_CHECKING, TypeVar

F = TypeVar("F", bound=Callable)

if TYPE_CHECKING:
    import aggdraw  # type: ignore[import-not-found]

try:
    import aggdraw  # noqa: F401  # type: ignore[import-not-found,no-redef]

    HAS_AGGDRAW = True
except ImportError:
    HAS_AGGDRAW = False


def require_aggdraw(func: F) -> F:
    """
    Decorator to check if aggdraw is available before calling the function.

    Required for vector shape rendering (polygons, strokes, dashes).

    Raises:
        ImportError: If aggdraw is not installed.

    Example:
        >>> @require_aggdraw
        ... def draw_shape(spec, width, height):
        ...     return _draw_polygon(points, width, height)
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if not HAS_AGGDRAW:
            raise ImportError(
                "Vector shape rendering requires: aggdraw\n\n"
                "Install with:\n"
                "    pip install 'skin-tools[composite]'\n"
                "Or:\n"
                "    pip install aggdraw"
            )
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
