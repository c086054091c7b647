"""
User-facing data model: pixel buffers, colors, layers and IO helpers.
"""

from skin_tools.api.buffer import PixelBuffer
from skin_tools.api.color import ColorRamp, ColorStop
from skin_tools.api.layers import (
    EncodedImage,
    GeneratorSpec,
    Gradient,
    Layer,
    LayerEffect,
    LayerTable,
    Mask,
    Shadow,
    ShapeSpec,
    Stroke,
    TextSpec,
    Transform2D,
)

__all__ = [
    "ColorRamp",
    "ColorStop",
    "EncodedImage",
    "GeneratorSpec",
    "Gradient",
    "Layer",
    "LayerEffect",
    "LayerTable",
    "Mask",
    "PixelBuffer",
    "Shadow",
    "ShapeSpec",
    "Stroke",
    "TextSpec",
    "Transform2D",
]
