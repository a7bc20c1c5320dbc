"""
Schema module for refstore.

This module provides the DDL side of provisioning:
- SchemaDefinition: ordered idempotent DDL for one database
- SchemaRegistry: identifier -> SchemaDefinition lookup
- Built-in definitions for the bundled reference databases

Invariants:
    - Every statement is CREATE ... IF NOT EXISTS
    - The global registry is frozen before it is handed out
"""

from .builtin import (
    BUILTIN_SCHEMAS,
    COUNTRIES,
    COUNTRIES_ID,
    COURTS,
    COURTS_ID,
    DEVICE_REGISTRY,
    DEVICE_REGISTRY_ID,
)
from .registry import (
    DuplicateRegistrationError,
    RegistryFrozenError,
    SchemaRegistry,
    get_registry,
    reset_registry,
)
from .types import SchemaDefinition

__all__ = [
    # Types
    "SchemaDefinition",
    # Registry
    "SchemaRegistry",
    "get_registry",
    "reset_registry",
    "RegistryFrozenError",
    "DuplicateRegistrationError",
    # Built-ins
    "BUILTIN_SCHEMAS",
    "DEVICE_REGISTRY",
    "DEVICE_REGISTRY_ID",
    "COUNTRIES",
    "COUNTRIES_ID",
    "COURTS",
    "COURTS_ID",
]
