import logging

import pytest

from skin_tools.registry import new_registry

logger = logging.getLogger(__name__)


def test_register_sets_attribute():
    registry, register = new_registry(attribute="kind")

    @register("wave")
    class Wave:
        pass

    assert registry == {"wave": Wave}
    assert Wave.kind == "wave"
    assert Wave().kind == "wave"


def test_register_without_attribute():
    registry, register = new_registry()

    @register(1)
    def painter():
        return "painted"

    assert registry[1]() == "painted"
    assert not hasattr(painter, "kind")


def test_register_twice():
    registry, register = new_registry(attribute="kind")

    @register("wave")
    def first():
        pass

    with pytest.raises(KeyError):

        @register("wave")
        def second():
            pass

    assert registry["wave"] is first
