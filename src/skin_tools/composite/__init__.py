"""
Composite module for layer rendering and blending.

This subpackage flattens a layer stack into one
:py:class:`~skin_tools.api.buffer.PixelBuffer`. It implements the W3C blend
modes, layer effects, masks, affine placement, and rasterization of text and
vector shapes.

**Note**: Vector shapes require an optional dependency. Install with::

    pip install 'skin-tools[composite]'

The composite extra includes:

- ``aggdraw``: For anti-aliased polygon and stroke rasterization

Key modules:

- :py:mod:`skin_tools.composite.composite`: Main compositing functions
- :py:mod:`skin_tools.composite.blend`: Blend mode implementations
- :py:mod:`skin_tools.composite.effects`: Layer effects (stroke, shadow, etc.)
- :py:mod:`skin_tools.composite.vector`: Vector shape rendering
- :py:mod:`skin_tools.composite.text`: Text layout with Pillow fonts
- :py:mod:`skin_tools.composite.paint`: Fill rendering (solid, gradients)

Example usage::

    from skin_tools.api import Layer, PixelBuffer
    from skin_tools.composite import composite

    layers = [
        Layer('top', opacity=50, content=PixelBuffer.new(4, 4, (255, 255, 255))),
        Layer('bottom', content=PixelBuffer.new(4, 4, (0, 0, 0))),
    ]
    result = composite(layers, 4, 4)
    result.buffer.array[0, 0]  # [128, 128, 128, 255]

A layer whose content cannot be rendered is skipped and reported in
:py:attr:`CompositeResult.warnings` instead of failing the whole pass.
"""

from skin_tools.composite.composite import (
    CompositeResult,
    Compositor,
    composite,
    composite_pil,
)

__all__ = [
    "CompositeResult",
    "Compositor",
    "composite",
    "composite_pil",
]
