"""Pytest configuration for skin-tools tests."""

from typing import Any

import pytest


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "composite: mark test as requiring optional composite dependencies (aggdraw)",
    )


# Check if optional composite dependencies are available
try:
    import aggdraw  # noqa: F401 # type: ignore

    HAS_AGGDRAW = True
except ImportError:
    HAS_AGGDRAW = False


# Marker to skip tests that require aggdraw
skip_without_aggdraw = pytest.mark.skipif(
    not HAS_AGGDRAW,
    reason="Requires composite dependencies: pip install 'skin-tools[composite]'",
)
