"""Layout Store Module - Owner of the current blueprint layout.

This module provides the single mutable layout the server edits:
- Entity and tile creation with catalog type checks
- Position-indexed lookup, removal and move
- Layout summary (counts, bounding box, listings)
- Reset and whole-layout replacement from a blueprint string

Lookups scan in creation order and match positions exactly; several
entities (or tiles) may share a position, and the first one wins.
Lookups that find nothing return None rather than raising.

Usage:
    from factorio_mcp.core.layout_store import LayoutStore

    store = LayoutStore()
    entity = store.create_entity("assembling-machine-2", Position(1.5, 1.5),
                                 recipe="iron-gear-wheel")
    store.find_entity(Position(1.5, 1.5))
    blueprint_string = store.encode()
"""

import logging
from typing import Any, Dict, List, Optional

from . import codec
from .catalog import EntityCatalog, EntityDefinition, get_catalog, normalize_name
from ..models.blueprint import Direction, Entity, Layout, Position, Tile

logger = logging.getLogger(__name__)


class CapabilityError(ValueError):
    """Raised when a recipe or modules are set on an entity type that cannot hold them."""
    pass


class LayoutStore:
    """Single-owner store for the blueprint being edited.

    Entity numbers start at 1, increase with every creation and are never
    handed out twice; only reset() (or loading a new layout) restarts them.

    Example:
        store = LayoutStore()
        store.create_entity("transport-belt", Position(0.5, 0.5), Direction.EAST)
        store.move_entity(Position(0.5, 0.5), Position(1.5, 0.5))
        info = store.describe(include_entities=True)
    """

    def __init__(self, catalog: Optional[EntityCatalog] = None, layout: Optional[Layout] = None):
        """Initialize the store.

        Args:
            catalog: Entity catalog (defaults to the packaged catalog)
            layout: Initial layout (defaults to an empty one)
        """
        self.catalog = catalog if catalog is not None else get_catalog()
        self._layout = Layout()
        self._next_entity_number = 1
        if layout is not None:
            self._replace(layout)

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def layout(self) -> Layout:
        """Live reference to the current layout."""
        return self._layout

    @property
    def entities(self) -> List[Entity]:
        return list(self._layout.entities)

    @property
    def tiles(self) -> List[Tile]:
        return list(self._layout.tiles)

    @property
    def entity_count(self) -> int:
        return len(self._layout.entities)

    @property
    def tile_count(self) -> int:
        return len(self._layout.tiles)

    @property
    def next_entity_number(self) -> int:
        """Entity number the next created entity will receive."""
        return self._next_entity_number

    def is_empty(self) -> bool:
        return self._layout.is_empty()

    # =========================================================================
    # Entities
    # =========================================================================

    def create_entity(
        self,
        name: str,
        position: Position,
        direction: Direction = Direction.NORTH,
        recipe: Optional[str] = None,
        modules: Optional[List[str]] = None,
    ) -> Entity:
        """Place a new entity.

        All checks run before an entity number is allocated, so a rejected
        creation leaves the layout and the counter untouched. No collision
        check is made against existing placements.

        Args:
            name: Catalog type name
            position: Placement position
            direction: Facing direction
            recipe: Optional recipe (recipe-capable types only)
            modules: Optional module item names (module-capable types only)

        Returns:
            The created entity, as held by the store

        Raises:
            UnknownEntityTypeError: If the type is not in the catalog
            CapabilityError: If recipe or modules are not allowed for the type
        """
        definition = self.catalog.require(name)
        if recipe is not None:
            self._check_recipe(definition, recipe)
        if modules:
            modules = self._check_modules(definition, modules)

        entity = Entity(
            entity_number=self._next_entity_number,
            name=definition.name,
            position=position,
            direction=Direction(direction),
            recipe=recipe,
            modules=modules or None,
        )
        self._next_entity_number += 1
        self._layout.entities.append(entity)

        logger.debug(f"Created {entity.name} #{entity.entity_number} at {position}")
        return entity

    def set_entity_recipe(self, entity: Entity, recipe: str) -> None:
        """Set the recipe of an entity.

        Raises:
            CapabilityError: If the entity type does not take a recipe
        """
        self._check_recipe(self.catalog.require(entity.name), recipe)
        entity.recipe = recipe

    def set_entity_modules(self, entity: Entity, modules: List[str]) -> None:
        """Replace the modules of an entity.

        Raises:
            CapabilityError: If the modules do not fit the entity type
        """
        entity.modules = self._check_modules(self.catalog.require(entity.name), modules) or None

    def find_entity(self, position: Position) -> Optional[Entity]:
        """Return the first entity (in creation order) at exactly this position."""
        for entity in self._layout.entities:
            if entity.position == position:
                return entity
        return None

    def remove_entity(self, entity: Entity) -> None:
        """Detach an entity; its number is retired, not reused."""
        self._layout.entities.remove(entity)
        logger.debug(f"Removed {entity.name} #{entity.entity_number} at {entity.position}")

    def remove_entity_at_position(self, position: Position) -> Optional[Entity]:
        """Remove the first entity at a position.

        Returns:
            The detached entity, or None if nothing is there
        """
        entity = self.find_entity(position)
        if entity is None:
            return None
        self.remove_entity(entity)
        return entity

    def move_entity(self, from_position: Position, to_position: Position) -> Optional[Entity]:
        """Move the first entity at from_position to to_position.

        The entity is removed and recreated with the same type, direction,
        recipe and modules, so the moved entity gets a new entity number.

        Returns:
            The recreated entity, or None if nothing is at from_position
        """
        entity = self.find_entity(from_position)
        if entity is None:
            return None

        self.remove_entity(entity)
        moved = Entity(
            entity_number=self._next_entity_number,
            name=entity.name,
            position=to_position,
            direction=entity.direction,
            recipe=entity.recipe,
            modules=list(entity.modules) if entity.modules else None,
        )
        self._next_entity_number += 1
        self._layout.entities.append(moved)

        logger.debug(
            f"Moved {entity.name} #{entity.entity_number} {from_position} -> "
            f"#{moved.entity_number} {to_position}"
        )
        return moved

    # =========================================================================
    # Tiles
    # =========================================================================

    def create_tile(self, name: str, position: Position) -> Tile:
        """Place a tile. Tile names are stored as given and not checked against the catalog."""
        tile = Tile(name=name, position=position)
        self._layout.tiles.append(tile)
        logger.debug(f"Created tile {tile.name} at {position}")
        return tile

    def find_tile(self, position: Position) -> Optional[Tile]:
        for tile in self._layout.tiles:
            if tile.position == position:
                return tile
        return None

    def remove_tile_at_position(self, position: Position) -> Optional[Tile]:
        """Remove the first tile at a position, or return None if there is none."""
        tile = self.find_tile(position)
        if tile is None:
            return None
        self._layout.tiles.remove(tile)
        logger.debug(f"Removed tile {tile.name} at {position}")
        return tile

    # =========================================================================
    # Whole layout
    # =========================================================================

    def describe(self, include_entities: bool = False, include_tiles: bool = False) -> Dict[str, Any]:
        """Summarize the layout.

        Args:
            include_entities: Add the full entity listing (if any)
            include_tiles: Add the full tile listing (if any)

        Returns:
            Dict with entityCount, tileCount and, for a non-empty layout,
            dimensions {topLeft, bottomRight}
        """
        info: Dict[str, Any] = {
            "entityCount": self.entity_count,
            "tileCount": self.tile_count,
        }

        bounds = self._layout.bounding_box()
        if bounds is not None:
            top_left, bottom_right = bounds
            info["dimensions"] = {
                "topLeft": top_left.to_dict(),
                "bottomRight": bottom_right.to_dict(),
            }

        if include_entities and self._layout.entities:
            info["entities"] = [e.to_dict() for e in self._layout.entities]

        if include_tiles and self._layout.tiles:
            info["tiles"] = [t.to_dict() for t in self._layout.tiles]

        return info

    def reset(self) -> None:
        """Replace the layout with an empty one and restart entity numbering."""
        self._layout = Layout()
        self._next_entity_number = 1
        logger.info("Blueprint reset to empty layout")

    def encode(self) -> str:
        """Encode the current layout as a blueprint string."""
        return codec.encode(self._layout)

    def load(self, blueprint_string: str) -> None:
        """Replace the current layout with a decoded blueprint string.

        The current layout is kept if decoding or type checking fails.

        Raises:
            BlueprintDecodeError: If the string cannot be decoded
            UnknownEntityTypeError: If an entity type is not in the catalog
        """
        layout = codec.decode(blueprint_string)
        for entity in layout.entities:
            entity.name = self.catalog.require(entity.name).name
        self._replace(layout)
        logger.info(
            f"Loaded blueprint with {self.entity_count} entities and {self.tile_count} tiles"
        )

    def _replace(self, layout: Layout) -> None:
        self._layout = layout
        numbers = [e.entity_number for e in layout.entities]
        self._next_entity_number = max(numbers) + 1 if numbers else 1

    # =========================================================================
    # Capability checks
    # =========================================================================

    def _check_recipe(self, definition: EntityDefinition, recipe: str) -> None:
        if not definition.supports_recipe:
            raise CapabilityError(f"Entity type '{definition.name}' does not take a recipe")

    def _check_modules(self, definition: EntityDefinition, modules: List[str]) -> List[str]:
        if not definition.supports_modules:
            raise CapabilityError(f"Entity type '{definition.name}' has no module slots")

        if len(modules) > definition.module_slots:
            raise CapabilityError(
                f"Entity type '{definition.name}' has {definition.module_slots} module slots, "
                f"got {len(modules)} modules"
            )

        unknown = [m for m in modules if not self.catalog.is_module(m)]
        if unknown:
            raise CapabilityError(f"Unknown module type(s): {', '.join(unknown)}")

        return [normalize_name(m) for m in modules]


__all__ = [
    "CapabilityError",
    "LayoutStore",
]
