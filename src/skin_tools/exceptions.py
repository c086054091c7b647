"""
Exception hierarchy of skin-tools.

Every error raised by the engine derives from :py:class:`Error`. Errors that
also describe a bad argument inherit from :py:class:`ValueError` so callers
may catch them either way.
"""

from typing import Any, Optional


class Error(Exception):
    """Base class for skin-tools errors."""


class InvalidBufferDimensions(Error, ValueError):
    """Zero dimensions, or dimensions that disagree with the pixel data."""


class DecodeFailure(Error):
    """A layer's content could not be materialized.

    The compositor recovers from this error locally: the layer is skipped and
    the failure is reported through :py:attr:`CompositeResult.warnings`.
    """

    def __init__(
        self,
        message: str,
        layer_id: Any = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.layer_id = layer_id
        self.cause = cause

    def __str__(self) -> str:
        message = super().__str__()
        if self.layer_id is not None:
            message = "layer %r: %s" % (self.layer_id, message)
        return message


class UnsupportedParameterCombination(Error, ValueError):
    """Parameters are individually valid but cannot be used together."""


class OutOfRangeParameter(Error, ValueError):
    """A parameter is outside of its domain and no safe default exists."""


class Cancelled(Error):
    """The caller requested cancellation."""
