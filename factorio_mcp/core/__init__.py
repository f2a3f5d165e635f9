"""
Core Layer - Blueprint layout ownership and encoding

Modules:
- catalog: Entity type table and capability flags
- codec: Blueprint string encode/decode
- layout_store: The blueprint being edited
"""

from .catalog import (
    EntityCatalog,
    EntityDefinition,
    UnknownEntityTypeError,
    get_catalog,
)
from .codec import (
    BlueprintDecodeError,
    decode,
    encode,
)
from .layout_store import (
    CapabilityError,
    LayoutStore,
)

__all__ = [
    # Catalog
    'EntityCatalog',
    'EntityDefinition',
    'UnknownEntityTypeError',
    'get_catalog',
    # Codec
    'BlueprintDecodeError',
    'decode',
    'encode',
    # Layout
    'CapabilityError',
    'LayoutStore',
]
