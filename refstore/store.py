"""
Reference database access for refstore.

A ReferenceDatabase binds one DatabaseDescriptor to its install file and is
the only object collaborators use to read and write it:
- query(): read-only, short-lived connection per call, rows materialized
- exec_sql(): mutating statements on the cached writable connection
- ensure_table_exists(): recreate the device table if it is missing

Invariants:
    - At most one writable connection is cached per instance
    - Read connections never outlive the query() call
    - Rows are lists of dicts in the column order of the statement
    - SQL errors propagate unchanged (no catch-and-suppress)
    - Two instances for the same install path are not coordinated

How to change safely:
    - Keep query() read-only (mode=ro); it must never create the file
    - Close the writable connection before anything replaces the file
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from .errors import DatabaseUnavailableError
from .paths import DatabaseDescriptor, PathResolver
from .provision.types import ProvisionState
from .provision.version import read_only_uri
from .schema.builtin import DEVICE_REGISTRY_ID
from .schema.registry import SchemaRegistry, get_registry

logger = logging.getLogger(__name__)

Row = dict[str, str]


def _params(args: Sequence[Any]) -> tuple[Any, ...]:
    """Bound parameters as a tuple; a bare string would bind one per character."""
    if isinstance(args, (str, bytes)):
        raise TypeError(
            f"args must be a sequence of parameters, not {type(args).__name__}; "
            "wrap a single value as (value,)"
        )
    return tuple(args)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class ReferenceDatabase:
    """One managed reference database and its connections.

    Attributes:
        descriptor: Identity and expected version
        install_path: Where the writable copy lives
        state: Last terminal provisioning state, None until provisioned

    Example:
        >>> db = ReferenceDatabase(DatabaseDescriptor("paises.db", 2), paths)
        >>> provisioner.ensure_provisioned(db)
        >>> db.query("SELECT nombre FROM paises")
        [{'nombre': 'España'}, ...]
    """

    def __init__(
        self,
        descriptor: DatabaseDescriptor,
        paths: PathResolver,
        registry: SchemaRegistry | None = None,
        busy_timeout_ms: int = 5000,
    ) -> None:
        self.descriptor = descriptor
        self.paths = paths
        self.registry = registry or get_registry()
        self.busy_timeout_ms = busy_timeout_ms
        self.state: ProvisionState | None = None
        self._writable: sqlite3.Connection | None = None

    @property
    def identifier(self) -> str:
        return self.descriptor.identifier

    @property
    def install_path(self) -> Path:
        return self.paths.install_path(self.descriptor.identifier)

    def exists(self) -> bool:
        """Whether an install file is present."""
        return self.install_path.is_file()

    def __repr__(self) -> str:
        return (
            f"ReferenceDatabase({self.identifier!r}, "
            f"expected_version={self.descriptor.expected_version}, state={self.state})"
        )

    # -- connection lifecycle --------------------------------------------------

    def writable(self, create: bool = True) -> sqlite3.Connection:
        """Return the cached writable connection, opening it if needed.

        Args:
            create: Create the install file (and directories) when missing

        Raises:
            DatabaseUnavailableError: If the file is missing and create=False
        """
        if self._writable is not None:
            return self._writable

        path = self.install_path
        if not path.exists():
            if not create:
                raise DatabaseUnavailableError(self.identifier, str(path))
            path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            str(path),
            timeout=self.busy_timeout_ms / 1000.0,
            isolation_level=None,  # Autocommit; statements apply immediately
        )
        conn.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout_ms)}")
        self._writable = conn
        logger.debug("Opened writable connection", extra={"identifier": self.identifier})
        return conn

    def close(self) -> None:
        """Close the cached writable connection, if any."""
        if self._writable is not None:
            self._writable.close()
            self._writable = None
            logger.debug("Closed writable connection", extra={"identifier": self.identifier})

    def __enter__(self) -> ReferenceDatabase:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @contextmanager
    def _read_connection(self) -> Iterator[sqlite3.Connection]:
        """Short-lived read-only connection, closed on every exit path."""
        path = self.install_path
        if not path.is_file():
            raise DatabaseUnavailableError(self.identifier, str(path))

        conn = sqlite3.connect(
            read_only_uri(path),
            uri=True,
            timeout=self.busy_timeout_ms / 1000.0,
        )
        try:
            yield conn
        finally:
            conn.close()

    # -- statements --------------------------------------------------------------

    def query(self, sql: str, args: Sequence[Any] = ()) -> list[Row]:
        """Run a read statement and return every row.

        Args:
            sql: SELECT (or other read-only) statement
            args: Positional parameters

        Returns:
            Rows as dicts keyed by column name, in result-set column order.
            NULL values are returned as "".

        Raises:
            DatabaseUnavailableError: If the database is not installed
            sqlite3.Error: If the statement fails
            TypeError: If args is a str or bytes instead of a sequence
        """
        with self._read_connection() as conn:
            cursor = conn.execute(sql, _params(args))
            columns = [col[0] for col in cursor.description or ()]
            rows = [
                {name: _as_text(value) for name, value in zip(columns, record)}
                for record in cursor.fetchall()
            ]

        logger.debug(
            "Query executed",
            extra={"identifier": self.identifier, "rows": len(rows)},
        )
        return rows

    def exec_sql(self, sql: str, args: Sequence[Any] = ()) -> None:
        """Run a mutating statement on the writable connection.

        Raises:
            DatabaseUnavailableError: If the database is not installed
            sqlite3.Error: If the statement fails (e.g. IntegrityError)
            TypeError: If args is a str or bytes instead of a sequence
        """
        self.writable(create=False).execute(sql, _params(args))

    def ensure_table_exists(self) -> None:
        """Make sure the device registry table exists, even with zero rows.

        Creates the install file when it is missing.
        """
        conn = self.writable()
        self.registry.ensure_schema(conn, DEVICE_REGISTRY_ID)
        logger.debug("Device table ensured", extra={"identifier": self.identifier})
