"""
Error types for refstore.

This module defines all exception types raised by the package:
- RefStoreError: Base exception
- CopyError / AssetNotFoundError: Asset copy failures
- VersionReadError / VersionWriteError: Version stamp access failures
- UnknownSchemaError: No schema registered for an identifier
- ProvisionError: Provisioning could not produce a usable database
- DatabaseUnavailableError: Query against a database that is not installed
- InvalidIdentifierError: Identifier cannot be mapped to a file name

Invariants:
    - All errors inherit from RefStoreError
    - Errors carry the database identifier in details when one is known
    - SQL errors from queries are NOT wrapped; sqlite3.Error propagates as is
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class RefStoreError(Exception):
    """Base exception for all refstore errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "REFSTORE_ERROR"
        self.details = details or {}


class InvalidIdentifierError(RefStoreError):
    """Database identifier is not a single, safe file name."""

    def __init__(self, identifier: str) -> None:
        super().__init__(
            f"Invalid database identifier: {identifier!r}",
            code="INVALID_IDENTIFIER",
            details={"identifier": identifier},
        )
        self.identifier = identifier


class CopyError(RefStoreError):
    """Copying an asset to its install path failed.

    Raised when:
    - The install directory cannot be created
    - The destination cannot be opened or written
    - Stamping the version on the copied file fails

    A partially written destination is left in place.
    """

    def __init__(
        self,
        message: str,
        identifier: Optional[str] = None,
        stage: Optional[str] = None,
        code: str = "COPY_ERROR",
    ) -> None:
        super().__init__(
            message,
            code=code,
            details={"identifier": identifier, "stage": stage},
        )
        self.identifier = identifier
        self.stage = stage


class AssetNotFoundError(CopyError):
    """The bundled asset for an identifier does not exist."""

    def __init__(self, identifier: str, asset_path: str) -> None:
        super().__init__(
            f"Asset not found for '{identifier}': {asset_path}",
            identifier=identifier,
            stage="open_asset",
            code="ASSET_NOT_FOUND",
        )
        self.asset_path = asset_path
        self.details["asset_path"] = asset_path


class VersionReadError(RefStoreError):
    """The version stamp of a database file could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Cannot read version of {path}: {reason}",
            code="VERSION_READ_ERROR",
            details={"path": path, "reason": reason},
        )
        self.path = path


class VersionWriteError(RefStoreError):
    """The version stamp could not be written."""

    def __init__(self, value: int, reason: str) -> None:
        super().__init__(
            f"Cannot write version {value}: {reason}",
            code="VERSION_WRITE_ERROR",
            details={"value": value, "reason": reason},
        )
        self.value = value


class UnknownSchemaError(RefStoreError):
    """No schema definition is registered for an identifier."""

    def __init__(self, identifier: str) -> None:
        super().__init__(
            f"No schema registered for '{identifier}'",
            code="UNKNOWN_SCHEMA",
            details={"identifier": identifier},
        )
        self.identifier = identifier


class ProvisionError(RefStoreError):
    """Provisioning ended without a queryable database.

    Raised when:
    - An overversioned file was deleted and the asset could not be copied
    - The schema fallback itself failed
    """

    def __init__(
        self,
        message: str,
        identifier: str,
        initial_state: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="PROVISION_FAILED",
            details={"identifier": identifier, "initial_state": initial_state},
        )
        self.identifier = identifier
        self.initial_state = initial_state


class DatabaseUnavailableError(RefStoreError):
    """The database has no installed file to run statements against."""

    def __init__(self, identifier: str, path: str) -> None:
        super().__init__(
            f"Database '{identifier}' is unavailable: no file at {path}",
            code="DATABASE_UNAVAILABLE",
            details={"identifier": identifier, "path": path},
        )
        self.identifier = identifier
        self.path = path
