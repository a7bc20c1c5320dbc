"""
refstore - provisioning and versioning for bundled SQLite reference databases.

The application ships small read-only reference databases (device registry,
country list, court lookup) as assets. Before anything queries them, refstore
materializes a writable, versioned copy of each on persistent storage.

Architecture:
    ┌──────────────┐     ┌──────────────────┐     ┌─────────────────┐
    │ Host startup │────▶│ ReferenceCatalog │────▶│   Provisioner   │
    └──────────────┘     └────────┬─────────┘     └───┬────┬────┬───┘
                                  │                   │    │    │
                                  ▼                   ▼    ▼    ▼
                        ┌───────────────────┐   Copier Version Schema
                        │ ReferenceDatabase │   (asset) (stamp) Registry
                        │ query / exec_sql  │
                        └─────────┬─────────┘
                                  ▼
                        <data_dir>/<identifier>  ◀── <asset_dir>/<identifier>

Invariants:
    - Stale files are replaced wholesale, never migrated
    - A file is usable only when its version stamp equals the expected one
    - Provisioning is synchronous and single-attempt
    - Query and execute errors propagate to the caller

How to change safely:
    - Ship a new asset and bump its expected version together
    - Register DDL for new databases in the schema registry
"""

from ._version import __version__
from .bootstrap import ReferenceCatalog, setup_logging
from .config import Settings
from .errors import (
    AssetNotFoundError,
    CopyError,
    DatabaseUnavailableError,
    InvalidIdentifierError,
    ProvisionError,
    RefStoreError,
    UnknownSchemaError,
    VersionReadError,
    VersionWriteError,
)
from .paths import DatabaseDescriptor, PathResolver
from .provision import ProvisionOutcome, Provisioner, ProvisionState
from .store import ReferenceDatabase

__all__ = [
    "__version__",
    "Settings",
    "setup_logging",
    "ReferenceCatalog",
    "ReferenceDatabase",
    "DatabaseDescriptor",
    "PathResolver",
    "Provisioner",
    "ProvisionOutcome",
    "ProvisionState",
    # Errors
    "RefStoreError",
    "AssetNotFoundError",
    "CopyError",
    "VersionReadError",
    "VersionWriteError",
    "UnknownSchemaError",
    "ProvisionError",
    "DatabaseUnavailableError",
    "InvalidIdentifierError",
]
