"""
Configuration management for refstore.

Settings are loaded from environment variables with the REFSTORE_ prefix;
every value can also be passed explicitly, which is how tests run several
independently versioned database sets in one process.

    REFSTORE_ASSET_DIR           directory holding the bundled assets
    REFSTORE_DATA_DIR            directory for the installed copies
    REFSTORE_COPY_BUFFER_SIZE    copy chunk size in bytes
    REFSTORE_BUSY_TIMEOUT_MS     SQLite busy timeout
    REFSTORE_DATABASE_VERSIONS   JSON object {identifier: expected_version}
    REFSTORE_LOG_LEVEL           DEBUG, INFO, WARNING, ERROR
    REFSTORE_LOG_FORMAT          text or json

Invariants:
    - All settings have sensible defaults for local development
    - Expected versions are non-negative
    - Descriptors are produced in the order of database_versions

How to change safely:
    - Bump a version in database_versions together with the new asset
    - Add new settings with defaults that keep existing deployments working
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .errors import InvalidIdentifierError
from .paths import DatabaseDescriptor, PathResolver, validate_identifier
from .provision.copier import DEFAULT_BUFFER_SIZE
from .schema.builtin import COUNTRIES_ID, COURTS_ID, DEVICE_REGISTRY_ID

logger = logging.getLogger(__name__)


def _default_versions() -> dict[str, int]:
    return {COUNTRIES_ID: 1, COURTS_ID: 1, DEVICE_REGISTRY_ID: 1}


class Settings(BaseSettings):
    """refstore configuration loaded from environment."""

    asset_dir: Path = Field(default=Path("assets"), description="Bundled asset directory")
    data_dir: Path = Field(default=Path("databases"), description="Install directory")

    copy_buffer_size: int = Field(
        default=DEFAULT_BUFFER_SIZE, gt=0, description="Copy chunk size in bytes"
    )
    busy_timeout_ms: int = Field(default=5000, ge=0, description="SQLite busy timeout")

    database_versions: dict[str, int] = Field(
        default_factory=_default_versions,
        description="Expected version per database identifier",
    )

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format (text, json)")

    model_config = {"env_prefix": "REFSTORE_"}

    @field_validator("database_versions")
    @classmethod
    def _check_versions(cls, value: dict[str, int]) -> dict[str, int]:
        for identifier, version in value.items():
            try:
                validate_identifier(identifier)
            except InvalidIdentifierError as e:
                raise ValueError(e.message) from e
            if version < 0:
                raise ValueError(f"Version for '{identifier}' must be >= 0, got {version}")
        return value

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("text", "json"):
            raise ValueError(f"Invalid log_format '{value}'. Must be one of: text, json")
        return value

    def descriptors(self) -> list[DatabaseDescriptor]:
        """One descriptor per configured database, in configuration order."""
        return [
            DatabaseDescriptor(identifier=identifier, expected_version=version)
            for identifier, version in self.database_versions.items()
        ]

    def path_resolver(self) -> PathResolver:
        return PathResolver(self.asset_dir, self.data_dir)

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "refstore configuration loaded",
            extra={
                "asset_dir": str(self.asset_dir),
                "data_dir": str(self.data_dir),
                "copy_buffer_size": self.copy_buffer_size,
                "databases": dict(self.database_versions),
                "log_level": self.log_level,
            },
        )
