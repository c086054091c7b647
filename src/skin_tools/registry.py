"""
Keyed registries of parameter classes and painters.

Generators, smart masks and filters register one attrs parameter class per
type; layer effects register one painter function per type. The key is
copied onto the registered object, so an instance knows its own type::

    from skin_tools.registry import new_registry

    FILTERS, register = new_registry(attribute='kind')

    @register(FilterKind.INVERT)
    @define
    class Invert(FilterParams):
        ...

    assert FILTERS[FilterKind.INVERT] is Invert
    assert Invert().kind == FilterKind.INVERT
"""

from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

T = TypeVar("T")


def new_registry(
    attribute: Optional[str] = None,
) -> Tuple[Dict[Any, Any], Callable[[Any], Callable[[T], T]]]:
    """
    Create an empty registry and its ``@register(key)`` decorator.

    :param attribute: name of the class or function attribute that receives
        the key.
    :raise KeyError: from the decorator, when a key is registered twice.
    """
    registry: Dict[Any, Any] = {}

    def register(key: Any) -> Callable[[T], T]:
        def decorator(obj: T) -> T:
            if key in registry:
                raise KeyError(
                    "%r is already registered to %s"
                    % (key, getattr(registry[key], "__name__", registry[key]))
                )
            if attribute:
                setattr(obj, attribute, key)
            registry[key] = obj
            return obj

        return decorator

    return registry, register
