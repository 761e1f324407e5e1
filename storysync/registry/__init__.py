"""Registry assembly and structural validation."""

from .assembler import KNOWN_REGISTRY_COMPONENTS, RegistryAssembler
from .schema import (
    REGISTRY_ITEM_SCHEMA_URL,
    REGISTRY_SCHEMA_URL,
    Registry,
    RegistryItem,
    validate_item,
    validate_registry,
)

__all__ = [
    "KNOWN_REGISTRY_COMPONENTS",
    "REGISTRY_ITEM_SCHEMA_URL",
    "REGISTRY_SCHEMA_URL",
    "Registry",
    "RegistryAssembler",
    "RegistryItem",
    "validate_item",
    "validate_registry",
]
