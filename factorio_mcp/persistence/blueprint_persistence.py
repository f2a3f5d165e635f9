"""File persistence for the blueprint being edited."""

import logging
from pathlib import Path
from typing import Optional

from ..core.catalog import EntityCatalog
from ..core.codec import BlueprintDecodeError
from ..core.layout_store import LayoutStore

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when the persisted blueprint cannot be loaded at startup."""
    pass


class BlueprintPersistence:
    """Keeps the latest blueprint string in a single file.

    Every save overwrites the file; there are no snapshots. Save failures
    are logged and reported as None so the in-memory change stands.
    """

    def __init__(self, path: Path):
        """Initialize the persistence manager.

        Args:
            path: Blueprint file path (its directory is created on demand)
        """
        self.path = Path(path)

    @property
    def filename(self) -> str:
        return self.path.name

    def ensure_dir(self) -> None:
        """Create the blueprint directory if it does not exist."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create blueprints directory {self.path.parent}: {e}")

    def save(self, store: LayoutStore) -> Optional[str]:
        """Write the store's encoded layout to the blueprint file.

        Args:
            store: Layout store to persist

        Returns:
            File name written, or None if the write failed
        """
        try:
            blueprint_string = store.encode()
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(blueprint_string)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to save blueprint to {self.path}: {e}")
            return None

        logger.info(f"Blueprint saved to {self.filename}")
        return self.filename

    def read(self) -> Optional[str]:
        """Read the persisted blueprint string, or None if there is no file."""
        if not self.path.exists():
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            return f.read()

    def load_initial(self, catalog: Optional[EntityCatalog] = None, strict: bool = True) -> LayoutStore:
        """Build the startup layout store from the blueprint file.

        A missing or empty file yields an empty store. An undecodable file
        raises when strict, otherwise it is logged and an empty store is used.

        Args:
            catalog: Entity catalog for the store
            strict: Fail on an undecodable file

        Returns:
            LayoutStore seeded from the file

        Raises:
            PersistenceError: If strict and the file cannot be read (including
                non-UTF-8 content) or decoded
        """
        store = LayoutStore(catalog)

        try:
            blueprint_string = self.read()
        except (OSError, UnicodeDecodeError) as e:
            if strict:
                raise PersistenceError(f"Cannot read blueprint file {self.path}: {e}") from e
            logger.warning(f"Cannot read blueprint file {self.path}, starting empty: {e}")
            return store

        if blueprint_string is None or not blueprint_string.strip():
            logger.info(f"No saved blueprint at {self.path}, starting with an empty blueprint")
            return store

        try:
            store.load(blueprint_string)
        except (BlueprintDecodeError, ValueError) as e:
            if strict:
                raise PersistenceError(f"Cannot decode blueprint file {self.path}: {e}") from e
            logger.warning(f"Cannot decode blueprint file {self.path}, starting empty: {e}")
            return LayoutStore(catalog)

        logger.info(f"Loaded blueprint from {self.path}")
        return store


__all__ = [
    "BlueprintPersistence",
    "PersistenceError",
]
