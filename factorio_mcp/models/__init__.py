"""Data models for blueprint layouts and tool arguments."""

from .blueprint import (
    DEFAULT_BLUEPRINT_VERSION,
    Direction,
    Entity,
    Layout,
    Position,
    Tile,
)

__all__ = [
    "DEFAULT_BLUEPRINT_VERSION",
    "Direction",
    "Entity",
    "Layout",
    "Position",
    "Tile",
]
