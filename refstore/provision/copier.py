"""
Asset copier for refstore.

Streams a bundled asset into its install path and stamps the expected
version on the copy.

Copy sequence:
    1. Close the database's writable connection
    2. Create the install directory chain
    3. Open the asset read-only, the destination with truncation
    4. Copy in fixed-size chunks until end of stream, flush
    5. Close both streams (on every exit path)
    6. Reopen the destination and stamp user_version = expected_version

Invariants:
    - The asset is never written
    - Streams are released even when copying raises

Accepted risk:
    - A failure after the destination was opened leaves a partially written
      file behind. There is no rollback; the provisioner decides what to do
      with it.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from typing import TYPE_CHECKING

from ..errors import AssetNotFoundError, CopyError, VersionWriteError
from .version import write_version

if TYPE_CHECKING:
    from ..store import ReferenceDatabase

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 1024


class AssetCopier:
    """Copies bundled assets to install paths.

    Attributes:
        buffer_size: Chunk size for the copy loop in bytes
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        if buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive, got {buffer_size}")
        self.buffer_size = buffer_size

    def provision(self, database: ReferenceDatabase) -> int:
        """Copy the asset for a database and stamp its expected version.

        Args:
            database: Database to provision

        Returns:
            Number of bytes copied

        Raises:
            AssetNotFoundError: If the bundled asset does not exist
            CopyError: If any other stage fails
        """
        identifier = database.identifier
        database.close()

        dest = database.install_path
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CopyError(
                f"Cannot create install directory {dest.parent}: {e}",
                identifier=identifier,
                stage="mkdir",
            ) from e

        asset = database.paths.asset_path(identifier)
        try:
            source = open(asset, "rb")
        except FileNotFoundError as e:
            raise AssetNotFoundError(identifier, str(asset)) from e
        except OSError as e:
            raise CopyError(
                f"Cannot open asset {asset}: {e}",
                identifier=identifier,
                stage="open_asset",
            ) from e

        copied = 0
        with source:
            try:
                with open(dest, "wb") as target:
                    for chunk in iter(lambda: source.read(self.buffer_size), b""):
                        target.write(chunk)
                        copied += len(chunk)
                    target.flush()
            except OSError as e:
                raise CopyError(
                    f"Copying {asset} to {dest} failed after {copied} bytes: {e}",
                    identifier=identifier,
                    stage="copy",
                ) from e

        logger.debug(
            "Asset copied",
            extra={"identifier": identifier, "bytes": copied, "dest": str(dest)},
        )

        self._stamp(database, copied)
        return copied

    def _stamp(self, database: ReferenceDatabase, copied: int) -> None:
        """Reopen the copied file and write the expected version."""
        expected = database.descriptor.expected_version
        try:
            with closing(sqlite3.connect(str(database.install_path))) as conn:
                write_version(conn, expected)
        except (sqlite3.Error, VersionWriteError) as e:
            raise CopyError(
                f"Cannot stamp version {expected} on {database.install_path}: {e}",
                identifier=database.identifier,
                stage="stamp",
            ) from e

        logger.info(
            "Provisioned from asset",
            extra={
                "identifier": database.identifier,
                "bytes": copied,
                "version": expected,
            },
        )
