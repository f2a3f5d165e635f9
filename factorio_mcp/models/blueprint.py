"""Domain records for blueprint layouts.

A layout is an ordered list of entities and an ordered list of tiles,
plus blueprint-level metadata (version, icons, label) that the store
carries through untouched.

Positions compare by exact numeric equality; there is no snapping.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional, Tuple

# Factorio 1.1.110 as packed by the game: major<<48 | minor<<32 | patch<<16
DEFAULT_BLUEPRINT_VERSION = (1 << 48) | (1 << 32) | (110 << 16)


class Direction(IntEnum):
    """Eight-way entity direction in blueprint encoding."""
    NORTH = 0
    NORTHEAST = 1
    EAST = 2
    SOUTHEAST = 3
    SOUTH = 4
    SOUTHWEST = 5
    WEST = 6
    NORTHWEST = 7


@dataclass(frozen=True)
class Position:
    """Point in blueprint tile space.

    Attributes:
        x: Horizontal coordinate
        y: Vertical coordinate
    """
    x: float
    y: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Position":
        """Create Position from a {"x", "y"} mapping."""
        return cls(x=data["x"], y=data["y"])

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass
class Entity:
    """Placed entity instance.

    Attributes:
        entity_number: Identifier unique within the layout, never reused
        name: Catalog type name
        position: Placement position
        direction: Facing direction
        recipe: Recipe for recipe-capable machines
        modules: Module item names in slot order
    """
    entity_number: int
    name: str
    position: Position
    direction: Direction = Direction.NORTH
    recipe: Optional[str] = None
    modules: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the result representation used by the tools."""
        data = {
            "name": self.name,
            "position": self.position.to_dict(),
            "direction": int(self.direction),
            "entityNumber": self.entity_number,
        }
        if self.recipe is not None:
            data["recipe"] = self.recipe
        if self.modules:
            data["modules"] = list(self.modules)
        return data


@dataclass
class Tile:
    """Placed ground tile."""
    name: str
    position: Position

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "position": self.position.to_dict()}


@dataclass
class Layout:
    """Complete blueprint contents.

    Attributes:
        entities: Entities in creation order
        tiles: Tiles in creation order
        version: Packed game version, opaque to the store
        icons: Blueprint icon list, opaque to the store
        label: Optional blueprint label
        description: Optional blueprint description
    """
    entities: List[Entity] = field(default_factory=list)
    tiles: List[Tile] = field(default_factory=list)
    version: int = DEFAULT_BLUEPRINT_VERSION
    icons: List[Dict[str, Any]] = field(default_factory=list)
    label: Optional[str] = None
    description: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.entities and not self.tiles

    def bounding_box(self) -> Optional[Tuple[Position, Position]]:
        """Compute (top_left, bottom_right) over all entity and tile positions.

        Returns:
            Corner positions, or None if the layout is empty
        """
        positions = [e.position for e in self.entities] + [t.position for t in self.tiles]
        if not positions:
            return None

        x_coords = [p.x for p in positions]
        y_coords = [p.y for p in positions]
        return (
            Position(min(x_coords), min(y_coords)),
            Position(max(x_coords), max(y_coords)),
        )


__all__ = [
    "DEFAULT_BLUEPRINT_VERSION",
    "Direction",
    "Position",
    "Entity",
    "Tile",
    "Layout",
]
