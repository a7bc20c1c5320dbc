"""
Descriptors and path resolution for refstore.

A DatabaseDescriptor is the logical identity of one managed database. Its
install path is never stored; the PathResolver derives it, together with the
path of the bundled asset, from the identifier:

    asset:   <asset_dir>/<identifier>
    install: <data_dir>/<identifier>

Invariants:
    - The identifier is a single file name (no separators, no "." or "..")
    - Paths are derived, never cached on the descriptor
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import InvalidIdentifierError


def validate_identifier(identifier: str) -> str:
    """Check that an identifier can be used as a file name on both boundaries."""
    if (
        not identifier
        or identifier in (".", "..")
        or "/" in identifier
        or "\\" in identifier
        or "\x00" in identifier
    ):
        raise InvalidIdentifierError(identifier)
    return identifier


@dataclass(frozen=True)
class DatabaseDescriptor:
    """Identity of one managed reference database.

    Attributes:
        identifier: Stable key for schema, asset and install path lookup
        expected_version: Version stamp a usable install file must carry
    """

    identifier: str
    expected_version: int

    def __post_init__(self) -> None:
        validate_identifier(self.identifier)
        if self.expected_version < 0:
            raise ValueError(
                f"expected_version must be >= 0, got {self.expected_version} "
                f"for '{self.identifier}'"
            )


class PathResolver:
    """Derives asset and install paths from a database identifier.

    Example:
        >>> paths = PathResolver("/opt/app/assets", "/var/lib/app/databases")
        >>> paths.install_path("paises.db")
        PosixPath('/var/lib/app/databases/paises.db')
    """

    def __init__(self, asset_dir: str | Path, data_dir: str | Path) -> None:
        self.asset_dir = Path(asset_dir)
        self.data_dir = Path(data_dir)

    def asset_path(self, identifier: str) -> Path:
        """Path of the bundled, read-only asset."""
        return self.asset_dir / validate_identifier(identifier)

    def install_path(self, identifier: str) -> Path:
        """Path of the writable, installed copy."""
        return self.data_dir / validate_identifier(identifier)
