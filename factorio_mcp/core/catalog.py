"""
Core Catalog Module - Single Source of Truth for Entity Types

Loads the static table of placeable entity types (and module items) that
ships with the package. The layout store consults it to reject unknown
types and to decide which entities may carry a recipe or modules.

Type names use the game's dashed spelling (``assembling-machine-1``);
lookups also accept underscores.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "entities.json"


# Exception classes for fail-loud error handling
class UnknownEntityTypeError(ValueError):
    """Raised when an entity type is not registered in the catalog."""

    def __init__(self, name: str, available: Optional[List[str]] = None):
        self.name = name
        message = f"Unknown entity type '{name}'"
        if available:
            preview = ", ".join(available[:10])
            more = f" (and {len(available) - 10} more)" if len(available) > 10 else ""
            message += f". Available types: {preview}{more}"
        super().__init__(message)


@dataclass
class EntityDefinition:
    """Catalog entry for one entity type."""
    name: str
    type: str
    width: int = 1
    height: int = 1
    recipe: bool = False
    module_slots: int = 0

    # Remaining table attributes, reported as-is
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def supports_recipe(self) -> bool:
        return self.recipe

    @property
    def supports_modules(self) -> bool:
        return self.module_slots > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the dictionary reported by get_entity_info."""
        data = {
            "name": self.name,
            "type": self.type,
            "width": self.width,
            "height": self.height,
            "recipe": self.recipe,
            "moduleSlots": self.module_slots,
        }
        data.update(self.extra)
        return data


def normalize_name(name: str) -> str:
    """Convert an entity or item name to the dashed spelling."""
    return name.strip().replace("_", "-")


class EntityCatalog:
    """
    Read-only registry of entity types and module items.
    """

    def __init__(self, entities: Dict[str, Dict[str, Any]], modules: Optional[List[str]] = None):
        """Initialize from raw table data.

        Args:
            entities: Mapping of type name to table attributes
            modules: Valid module item names
        """
        self._definitions: Dict[str, EntityDefinition] = {}
        for name, attributes in entities.items():
            self._register(name, attributes)
        self._modules = {normalize_name(m) for m in (modules or [])}

    @classmethod
    def from_file(cls, path: Path = CATALOG_PATH) -> "EntityCatalog":
        """Load a catalog from a JSON table.

        Raises:
            FileNotFoundError: If the table does not exist
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        catalog = cls(data.get("entities", {}), data.get("modules", []))
        logger.debug(f"Loaded {len(catalog)} entity types from {path}")
        return catalog

    def _register(self, name: str, attributes: Dict[str, Any]) -> None:
        attrs = dict(attributes)
        definition = EntityDefinition(
            name=normalize_name(name),
            type=attrs.pop("type", "entity"),
            width=attrs.pop("width", 1),
            height=attrs.pop("height", 1),
            recipe=bool(attrs.pop("recipe", False)),
            module_slots=int(attrs.pop("moduleSlots", 0)),
            extra=attrs,
        )
        self._definitions[definition.name] = definition

    def lookup(self, name: str) -> Optional[EntityDefinition]:
        """Get the definition for a type name, or None if unknown."""
        return self._definitions.get(normalize_name(name))

    def require(self, name: str) -> EntityDefinition:
        """Get the definition for a type name.

        Raises:
            UnknownEntityTypeError: If the type is not in the catalog
        """
        definition = self.lookup(name)
        if definition is None:
            raise UnknownEntityTypeError(name, self.names())
        return definition

    def names(self) -> List[str]:
        """All entity type names, sorted."""
        return sorted(self._definitions)

    def module_names(self) -> List[str]:
        """All module item names, sorted."""
        return sorted(self._modules)

    def is_module(self, name: str) -> bool:
        return normalize_name(name) in self._modules

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __len__(self) -> int:
        return len(self._definitions)


# Singleton instance for global access
_catalog: Optional[EntityCatalog] = None


def get_catalog() -> EntityCatalog:
    """Get the global entity catalog, loading it on first use."""
    global _catalog
    if _catalog is None:
        _catalog = EntityCatalog.from_file()
    return _catalog


__all__ = [
    "EntityCatalog",
    "EntityDefinition",
    "UnknownEntityTypeError",
    "get_catalog",
    "normalize_name",
]
