"""
Version stamp access for installed database files.

The version stamp is SQLite's user_version header field (a 32-bit integer at
byte offset 60 of the database header). It is read through a read-only
connection and written through a writable one.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from ..errors import VersionReadError, VersionWriteError

MAX_VERSION = 2**31 - 1


def read_only_uri(path: str | Path) -> str:
    """SQLite URI that opens an existing file read-only and never creates it."""
    return f"{Path(path).resolve().as_uri()}?mode=ro"


def read_version(path: str | Path) -> int:
    """Read the version stamp of a database file.

    Args:
        path: Database file path

    Returns:
        The stored user_version

    Raises:
        VersionReadError: If the file is missing, not a database, or unreadable
    """
    try:
        conn = sqlite3.connect(read_only_uri(path), uri=True)
    except sqlite3.Error as e:
        raise VersionReadError(str(path), str(e)) from e

    try:
        row = conn.execute("PRAGMA user_version").fetchone()
    except sqlite3.Error as e:
        raise VersionReadError(str(path), str(e)) from e
    finally:
        conn.close()

    return int(row[0])


def write_version(conn: sqlite3.Connection, value: int) -> None:
    """Stamp the version on a writable connection.

    Args:
        conn: Writable connection to the database file
        value: Version to store

    Raises:
        ValueError: If value does not fit the header field
        VersionWriteError: If SQLite rejects the write (e.g. read-only handle)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Version must be an int, got {type(value).__name__}")
    if not 0 <= value <= MAX_VERSION:
        raise ValueError(f"Version {value} out of range 0..{MAX_VERSION}")

    try:
        # PRAGMA does not accept bound parameters; value is a validated int
        conn.execute(f"PRAGMA user_version = {value}")
        if conn.in_transaction:
            conn.commit()
    except sqlite3.Error as e:
        raise VersionWriteError(value, str(e)) from e
