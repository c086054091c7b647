"""
skin-tools: layer compositing and procedural texture synthesis for skin and
sticker editors.

Basic usage::

    from skin_tools import Layer, PixelBuffer, composite, generate

    noise = generate('noise', {'seed': 42, 'octaves': 4}, 256, 256)
    layers = [
        Layer('noise', opacity=60, blend_mode='multiply', content=noise),
        Layer('base', content=PixelBuffer.new(256, 256, (200, 120, 40, 255))),
    ]
    result = composite(layers, 256, 256)

Architecture:

- :py:mod:`skin_tools.api`: Pixel buffers, colors and the layer model
- :py:mod:`skin_tools.composite`: Layer rendering and blending engine
- :py:mod:`skin_tools.synth`: Seeded noise, texture generators, smart masks
- :py:mod:`skin_tools.filters`: Image filters, normal maps, channel packing
"""

from skin_tools.api.buffer import PixelBuffer
from skin_tools.api.layers import Layer, LayerTable
from skin_tools.composite import composite
from skin_tools.filters import apply_filter, combine, generate_normal_map
from skin_tools.synth import generate, generate_mask
from skin_tools.version import __version__

__all__ = [
    "Layer",
    "LayerTable",
    "PixelBuffer",
    "__version__",
    "apply_filter",
    "combine",
    "composite",
    "generate",
    "generate_mask",
    "generate_normal_map",
]
