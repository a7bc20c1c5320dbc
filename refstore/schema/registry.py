"""
Schema Registry for refstore.

The SchemaRegistry maps a database identifier to the SchemaDefinition that
recreates its tables. It provides:
- Registration of schema definitions
- Lookup by identifier
- Idempotent schema application against a writable connection
- Freeze mechanism to prevent runtime modifications

Invariants:
    - One definition per identifier
    - Registry is mutable during startup, frozen before provisioning
    - Once frozen, no new definitions can be registered
    - Fingerprint changes when any registered DDL changes

How to change safely:
    - Register new databases with a new identifier; the provisioner does
      not need to change
    - Keep every statement idempotent

Example:
    >>> registry = SchemaRegistry()
    >>> registry.register(COUNTRIES)
    >>> registry.freeze()
    >>> registry.ensure_schema(conn, "paises.db")
"""

from __future__ import annotations

import hashlib
import logging
import sqlite3
import threading
from typing import Dict, Iterator, Optional

from ..errors import RefStoreError, UnknownSchemaError
from .types import SchemaDefinition

logger = logging.getLogger(__name__)

# Global registry instance
_global_registry: Optional[SchemaRegistry] = None
_registry_lock = threading.Lock()


class RegistryFrozenError(RefStoreError):
    """Raised when attempting to modify a frozen registry."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="SCHEMA_REGISTRATION")


class DuplicateRegistrationError(RefStoreError):
    """Raised when attempting to register an identifier twice."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="SCHEMA_REGISTRATION")


class SchemaRegistry:
    """Registry of schema definitions keyed by database identifier.

    Thread-safety:
        - Registration is thread-safe (uses internal lock)
        - Lookups after freeze are lock-free
        - Freeze is atomic and irreversible

    Attributes:
        frozen: Whether the registry is frozen (immutable)
        fingerprint: SHA-256 hash of all definitions (computed on freeze)
    """

    def __init__(self) -> None:
        """Initialize an empty, mutable registry."""
        self._definitions: Dict[str, SchemaDefinition] = {}
        self._frozen = False
        self._fingerprint: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        """Whether the registry is frozen."""
        return self._frozen

    @property
    def fingerprint(self) -> Optional[str]:
        """Registry fingerprint (available after freeze)."""
        return self._fingerprint

    def register(self, definition: SchemaDefinition) -> None:
        """Register a schema definition.

        Args:
            definition: The definition to register

        Raises:
            RegistryFrozenError: If registry is frozen
            DuplicateRegistrationError: If the identifier is already registered
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(
                    f"Cannot register schema '{definition.identifier}': registry is frozen"
                )

            if definition.identifier in self._definitions:
                raise DuplicateRegistrationError(
                    f"Schema for '{definition.identifier}' already registered"
                )

            self._definitions[definition.identifier] = definition
            logger.debug(
                f"Registered schema: {definition.identifier} "
                f"({len(definition.statements)} statements)"
            )

    def get(self, identifier: str) -> SchemaDefinition:
        """Get the definition for an identifier.

        Raises:
            UnknownSchemaError: If nothing is registered for the identifier
        """
        try:
            return self._definitions[identifier]
        except KeyError:
            raise UnknownSchemaError(identifier) from None

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._definitions

    def __iter__(self) -> Iterator[SchemaDefinition]:
        yield from self._definitions.values()

    def __len__(self) -> int:
        return len(self._definitions)

    def ensure_schema(self, conn: sqlite3.Connection, identifier: str) -> None:
        """Run the registered DDL for an identifier against a writable connection.

        Safe to call repeatedly; statements are CREATE ... IF NOT EXISTS.

        Raises:
            UnknownSchemaError: If nothing is registered for the identifier
            sqlite3.Error: If a statement fails
        """
        definition = self.get(identifier)
        definition.apply(conn)
        logger.debug(
            "Schema ensured",
            extra={"identifier": identifier, "tables": list(definition.tables)},
        )

    def freeze(self) -> str:
        """Freeze the registry and compute fingerprint.

        Returns:
            Registry fingerprint string

        Raises:
            RegistryFrozenError: If already frozen
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Registry is already frozen")

            self._fingerprint = self._compute_fingerprint()
            self._frozen = True
            logger.info(
                f"Schema registry frozen with {len(self._definitions)} schemas, "
                f"fingerprint={self._fingerprint}"
            )
            return self._fingerprint

    def _compute_fingerprint(self) -> str:
        """SHA-256 over each definition's fingerprint, sorted by identifier."""
        digest = hashlib.sha256()
        for identifier in sorted(self._definitions):
            digest.update(identifier.encode("utf-8"))
            digest.update(self._definitions[identifier].fingerprint().encode("utf-8"))
        return f"sha256:{digest.hexdigest()}"


def get_registry() -> SchemaRegistry:
    """Get the global schema registry.

    On first use the registry is populated with the built-in reference
    database schemas and frozen.

    Returns:
        Global SchemaRegistry instance
    """
    global _global_registry
    with _registry_lock:
        if _global_registry is None:
            from .builtin import BUILTIN_SCHEMAS

            registry = SchemaRegistry()
            for definition in BUILTIN_SCHEMAS:
                registry.register(definition)
            registry.freeze()
            _global_registry = registry
        return _global_registry


def reset_registry() -> None:
    """Reset the global registry (for testing only).

    Warning: This is intended for test cleanup only.
    Never use in production code.
    """
    global _global_registry
    with _registry_lock:
        _global_registry = None
