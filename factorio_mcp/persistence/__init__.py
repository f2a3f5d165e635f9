"""Blueprint file persistence."""

from .blueprint_persistence import BlueprintPersistence, PersistenceError

__all__ = ["BlueprintPersistence", "PersistenceError"]
