"""
Schema definition types for refstore.

A SchemaDefinition is the ordered DDL that recreates the tables of one
reference database. It is what the provisioner falls back to when the
bundled asset cannot be copied.

Invariants:
    - Statements are idempotent (CREATE ... IF NOT EXISTS)
    - Statements run in declaration order
    - tables lists every table the statements create

How to change safely:
    - Only add IF NOT EXISTS statements; a definition may run against a
      database that already has the full schema
    - Never add ALTER statements; stale files are replaced, not migrated

Example:
    >>> COUNTRIES = SchemaDefinition(
    ...     identifier="paises.db",
    ...     statements=(
    ...         "CREATE TABLE IF NOT EXISTS paises (id INTEGER PRIMARY KEY, nombre TEXT NOT NULL)",
    ...     ),
    ...     tables=("paises",),
    ... )
"""

from __future__ import annotations

import hashlib
import sqlite3
from dataclasses import dataclass


@dataclass(frozen=True)
class SchemaDefinition:
    """DDL for one reference database.

    Attributes:
        identifier: Database identifier the schema belongs to
        statements: Ordered idempotent DDL statements
        tables: Names of the tables created by the statements
    """

    identifier: str
    statements: tuple[str, ...]
    tables: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.identifier:
            raise ValueError("identifier must not be empty")
        if not self.statements:
            raise ValueError(f"Schema '{self.identifier}' has no statements")
        for statement in self.statements:
            if "IF NOT EXISTS" not in statement.upper():
                raise ValueError(
                    f"Schema '{self.identifier}' statement is not idempotent: "
                    f"{statement.strip().splitlines()[0]}"
                )

    def apply(self, conn: sqlite3.Connection) -> None:
        """Execute every statement against a writable connection."""
        for statement in self.statements:
            conn.execute(statement)
        if conn.in_transaction:
            conn.commit()

    def fingerprint(self) -> str:
        """SHA-256 over the normalized statements."""
        digest = hashlib.sha256()
        for statement in self.statements:
            digest.update(" ".join(statement.split()).encode("utf-8"))
            digest.update(b"\n")
        return f"sha256:{digest.hexdigest()}"
