"""Blueprint string codec.

A blueprint string is a one-character format version ("0") followed by
base64 of the zlib-compressed JSON document ``{"blueprint": {...}}``.

Modules are written the way the game stores them, as an ``items`` mapping
of module name to count; decoding expands the mapping back into a list
in first-appearance order.
"""

import base64
import binascii
import json
import logging
import zlib
from typing import Any, Dict, List, Optional

from ..models.blueprint import (
    DEFAULT_BLUEPRINT_VERSION,
    Direction,
    Entity,
    Layout,
    Position,
    Tile,
)

logger = logging.getLogger(__name__)

FORMAT_VERSION = "0"


class BlueprintDecodeError(ValueError):
    """Raised when a string is not a decodable blueprint."""
    pass


def encode(layout: Layout) -> str:
    """Encode a layout as a blueprint string.

    Args:
        layout: Layout to encode

    Returns:
        Blueprint string
    """
    document = {"blueprint": layout_to_dict(layout)}
    payload = json.dumps(document, separators=(",", ":")).encode("utf-8")
    return FORMAT_VERSION + base64.b64encode(zlib.compress(payload, 9)).decode("ascii")


def decode(blueprint_string: str) -> Layout:
    """Decode a blueprint string into a layout.

    Args:
        blueprint_string: Encoded blueprint

    Returns:
        Decoded Layout

    Raises:
        BlueprintDecodeError: If the string is malformed or not a single blueprint
    """
    text = blueprint_string.strip()
    if not text:
        raise BlueprintDecodeError("Blueprint string is empty")

    if text[0] != FORMAT_VERSION:
        raise BlueprintDecodeError(
            f"Unsupported blueprint string version '{text[0]}' (expected '{FORMAT_VERSION}')"
        )

    try:
        compressed = base64.b64decode(text[1:], validate=True)
        document = json.loads(zlib.decompress(compressed).decode("utf-8"))
    except (binascii.Error, zlib.error, ValueError) as e:
        raise BlueprintDecodeError(f"Blueprint string is corrupt: {e}") from e

    if not isinstance(document, dict):
        raise BlueprintDecodeError("Blueprint document must be a JSON object")
    if "blueprint_book" in document:
        raise BlueprintDecodeError("Blueprint books are not supported")
    if not isinstance(document.get("blueprint"), dict):
        raise BlueprintDecodeError("Blueprint document has no 'blueprint' object")

    try:
        return dict_to_layout(document["blueprint"])
    except (KeyError, TypeError, ValueError) as e:
        raise BlueprintDecodeError(f"Invalid blueprint contents: {e!r}") from e


def layout_to_dict(layout: Layout) -> Dict[str, Any]:
    """Convert a layout to the blueprint JSON object."""
    data: Dict[str, Any] = {"item": "blueprint"}
    if layout.label is not None:
        data["label"] = layout.label
    if layout.description is not None:
        data["description"] = layout.description
    data["icons"] = layout.icons
    data["entities"] = [_entity_to_dict(e) for e in layout.entities]
    if layout.tiles:
        data["tiles"] = [
            {"name": t.name, "position": t.position.to_dict()} for t in layout.tiles
        ]
    data["version"] = layout.version
    return data


def dict_to_layout(data: Dict[str, Any]) -> Layout:
    """Convert a blueprint JSON object to a layout.

    Raises:
        KeyError, TypeError, ValueError: On missing or mistyped fields
    """
    entities = [_dict_to_entity(e) for e in data.get("entities", [])]

    numbers = [e.entity_number for e in entities]
    if len(set(numbers)) != len(numbers):
        raise ValueError("duplicate entity_number")

    tiles = [
        Tile(name=_require_str(t["name"]), position=_dict_to_position(t["position"]))
        for t in data.get("tiles", [])
    ]

    icons = data.get("icons", [])
    if not isinstance(icons, list):
        raise TypeError("icons must be a list")

    return Layout(
        entities=entities,
        tiles=tiles,
        version=int(data.get("version", DEFAULT_BLUEPRINT_VERSION)),
        icons=icons,
        label=data.get("label"),
        description=data.get("description"),
    )


def _entity_to_dict(entity: Entity) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "entity_number": entity.entity_number,
        "name": entity.name,
        "position": entity.position.to_dict(),
    }
    if entity.direction != Direction.NORTH:
        data["direction"] = int(entity.direction)
    if entity.recipe is not None:
        data["recipe"] = entity.recipe
    if entity.modules:
        items: Dict[str, int] = {}
        for module in entity.modules:
            items[module] = items.get(module, 0) + 1
        data["items"] = items
    return data


def _dict_to_entity(data: Dict[str, Any]) -> Entity:
    modules: Optional[List[str]] = None
    items = data.get("items")
    if items:
        if not isinstance(items, dict):
            raise TypeError("entity items must be a name -> count mapping")
        modules = []
        for name, count in items.items():
            if _require_int(count) < 0:
                raise ValueError(f"module count must not be negative, got {count!r}")
            modules.extend([name] * count)

    recipe = data.get("recipe")
    if recipe is not None:
        recipe = _require_str(recipe)

    return Entity(
        entity_number=_require_int(data["entity_number"]),
        name=_require_str(data["name"]),
        position=_dict_to_position(data["position"]),
        direction=Direction(data.get("direction", 0)),
        recipe=recipe,
        modules=modules,
    )


def _dict_to_position(data: Dict[str, Any]) -> Position:
    x, y = data["x"], data["y"]
    for value in (x, y):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"position coordinate must be a number, got {value!r}")
    return Position(x=x, y=y)


def _require_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected string, got {value!r}")
    return value


def _require_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected integer, got {value!r}")
    return value


__all__ = [
    "BlueprintDecodeError",
    "FORMAT_VERSION",
    "decode",
    "dict_to_layout",
    "encode",
    "layout_to_dict",
]
