"""
JSON boundary.

The editor stores documents as JSON with camelCase keys. This module turns
those dicts into the attrs model of :py:mod:`skin_tools.api.layers`; unknown
keys are ignored with a debug message.

Example::

    import json
    from skin_tools.api.serialization import document_from_dict

    with open('project.json') as f:
        document = document_from_dict(json.load(f))
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

import attrs
from attrs import define, field

from skin_tools.api.buffer import PixelBuffer
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
from skin_tools.exceptions import UnsupportedParameterCombination

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CAMEL = re.compile(r"(?<=[a-z0-9])([A-Z])")

# Boundary names that differ from the attribute names.
_ALIASES = {
    "text_align": "align",
    "inner": "inner_radius",
    "outer": "outer_radius",
}


def snake_case(name: str) -> str:
    """``blendMode`` to ``blend_mode``."""
    return _CAMEL.sub(r"_\1", name).lower().replace("-", "_")


def structure(kind: Type[T], data: Mapping[str, Any]) -> T:
    """
    Instantiate an attrs class from a dict with camelCase or snake_case keys.
    """
    names = attrs.fields_dict(kind)  # type: ignore[arg-type]
    kwargs = {}
    for key, value in data.items():
        name = snake_case(key)
        if name not in names:
            alias = _ALIASES.get(name)
            if alias is None or alias not in names:
                logger.debug("Ignore %s.%s" % (kind.__name__, key))
                continue
            name = alias
        kwargs[name] = value
    return kind(**kwargs)


def _transform(data: Optional[Mapping[str, Any]]) -> Optional[Transform2D]:
    return structure(Transform2D, data) if data else None


def _gradient(data: Optional[Mapping[str, Any]]) -> Optional[Gradient]:
    if not data:
        return None
    return Gradient(
        stops=data.get("stops", ()),
        gradient_type=data.get("type", "linear"),
        angle=data.get("angle", 0.0),
        scale=float(data.get("scale", 1.0)),
        reverse=data.get("reverse", False),
    )


def _stroke(data: Optional[Mapping[str, Any]]) -> Optional[Stroke]:
    return structure(Stroke, data) if data else None


def _text(data: Mapping[str, Any]) -> TextSpec:
    values = dict(data)
    stroke = _stroke(values.pop("stroke", None))
    shadow = values.pop("shadow", None)
    gradient = _gradient(values.pop("gradient", None))
    spec = structure(TextSpec, values)
    return attrs.evolve(
        spec,
        stroke=stroke,
        shadow=structure(Shadow, shadow) if shadow else None,
        gradient=gradient,
    )


def _shape(data: Mapping[str, Any]) -> ShapeSpec:
    values = dict(data)
    shape_type = values.pop("type", values.pop("shapeType", "rectangle"))
    fill = values.pop("fill", "#ffffff")
    stroke = _stroke(values.pop("stroke", None))
    gradient = None
    if isinstance(fill, Mapping):
        if "stops" in fill:
            gradient = _gradient(fill)
        else:
            logger.warning("Unsupported shape fill %r" % (fill,))
        fill = None
    if isinstance(values.get("points"), (int, float)):
        values["starPoints"] = values.pop("points")
    values["shapeType"] = shape_type
    spec = structure(ShapeSpec, values)
    return attrs.evolve(
        spec,
        fill=fill,
        gradient=gradient,
        stroke=stroke,
    )


def _effect(data: Mapping[str, Any]) -> LayerEffect:
    values = dict(data)
    parameters = values.pop("parameters", None) or {}
    values.update(parameters)
    effect_type = values.pop("type", values.pop("effectType", None))
    values.pop("id", None)
    return structure(LayerEffect, dict(values, effectType=effect_type))


def _mask(data: Optional[Mapping[str, Any]]) -> Optional[Mask]:
    if not data or not data.get("imageData"):
        return None
    return Mask(
        buffer=EncodedImage(data["imageData"]),
        inverted=data.get("inverted", False),
        enabled=data.get("enabled", True),
    )


def layer_from_dict(data: Mapping[str, Any]) -> Layer:
    """
    Convert one editor layer dict.

    Content is taken from ``imageData`` (kept encoded), ``textContent``,
    ``shapeContent`` or ``generator``; groups list ``children`` ids.
    """
    content: Any = None
    if data.get("textContent"):
        content = _text(data["textContent"])
    elif data.get("shapeContent"):
        content = _shape(data["shapeContent"])
    elif data.get("generator"):
        generator = data["generator"]
        content = GeneratorSpec(
            generator.get("type"),
            dict(generator.get("parameters", generator.get("params", {}))),
        )
    elif data.get("imageData"):
        content = EncodedImage(data["imageData"])

    children = data.get("children")
    if data.get("type") == "group" and children is None:
        children = ()
    if children is not None and content is not None:
        raise UnsupportedParameterCombination(
            "Group layer %r cannot carry content" % (data.get("id"),)
        )

    return Layer(
        id=data.get("id"),
        name=data.get("name", ""),
        visible=data.get("visible", True),
        opacity=data.get("opacity", 100),
        blend_mode=data.get("blendMode", "normal"),
        transform=_transform(data.get("transform")),
        mask=_mask(data.get("mask")),
        effects=[_effect(effect) for effect in data.get("effects") or ()],
        content=content,
        children=children,
    )


def layers_from_list(items: List[Mapping[str, Any]]) -> List[Layer]:
    return [layer_from_dict(item) for item in items]


@define
class Document:
    """
    Editor document: canvas size and the layer list.

    ``layers`` holds every layer declared in the file, top to bottom.
    Layers referenced as a group's child are not painted at the top level.
    """

    width: int = field(converter=int)
    height: int = field(converter=int)
    layers: List[Layer] = field(factory=list)
    background: Optional[str] = field(default=None)

    @property
    def table(self) -> LayerTable:
        return LayerTable(self.layers)

    @property
    def roots(self) -> List[Layer]:
        """Top-level layers, those not listed as some group's child."""
        nested = set()
        for layer in self.layers:
            nested.update(layer.children or ())
        return [layer for layer in self.layers if layer.id not in nested]


def document_from_dict(data: Mapping[str, Any]) -> Document:
    """Convert ``{width, height, layers}`` as saved by the editor."""
    if "data" in data and "layers" not in data:
        data = data["data"]
    return Document(
        width=data["width"],
        height=data["height"],
        layers=layers_from_list(data.get("layers", [])),
        background=data.get("backgroundColor"),
    )


def layer_to_dict(layer: Layer) -> Dict[str, Any]:
    """Summarize a layer for logging and debugging; content is not encoded."""
    result: Dict[str, Any] = {
        "id": layer.id,
        "name": layer.name,
        "visible": layer.visible,
        "opacity": layer.opacity,
        "blendMode": layer.blend_mode.value,
        "kind": layer.kind,
    }
    if layer.children is not None:
        result["children"] = list(layer.children)
    if isinstance(layer.content, PixelBuffer):
        result["size"] = list(layer.content.size)
    return result
