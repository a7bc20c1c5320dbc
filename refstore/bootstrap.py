"""
Start-up wiring for refstore.

The ReferenceCatalog owns one ReferenceDatabase per configured descriptor
and is what the host application holds on to:

    settings = Settings()
    setup_logging(settings)
    catalog = ReferenceCatalog(settings)
    catalog.provision_all()          # off the UI thread
    catalog.query("paises.db", "SELECT nombre FROM paises")

Invariants:
    - provision_all() attempts every database, in configuration order, even
      when an earlier one fails
    - Collaborators go through query/exec_sql; they never see version stamps,
      the registry or the copier
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import Any, Optional, Union

import json_log_formatter

from .config import Settings
from .errors import ProvisionError
from .provision import LoggingObserver, ProvisionObserver, ProvisionOutcome, Provisioner
from .schema.registry import SchemaRegistry, get_registry
from .store import ReferenceDatabase, Row

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure root logging from settings.

    Args:
        settings: refstore settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]


class ReferenceCatalog:
    """All managed reference databases of one application.

    Attributes:
        settings: Configuration the catalog was built from
        provisioner: Provisioner shared by every database
        databases: Identifier -> ReferenceDatabase, in configuration order
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[SchemaRegistry] = None,
        observer: Optional[ProvisionObserver] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.registry = registry or get_registry()
        self.provisioner = Provisioner(
            buffer_size=self.settings.copy_buffer_size,
            observer=observer or LoggingObserver(),
        )

        paths = self.settings.path_resolver()
        self.databases: dict[str, ReferenceDatabase] = {
            descriptor.identifier: ReferenceDatabase(
                descriptor,
                paths,
                registry=self.registry,
                busy_timeout_ms=self.settings.busy_timeout_ms,
            )
            for descriptor in self.settings.descriptors()
        }

    def __getitem__(self, identifier: str) -> ReferenceDatabase:
        try:
            return self.databases[identifier]
        except KeyError:
            raise KeyError(f"Unknown reference database: {identifier}") from None

    def __iter__(self) -> Iterator[ReferenceDatabase]:
        return iter(self.databases.values())

    def __len__(self) -> int:
        return len(self.databases)

    def ensure_provisioned(self, identifier: str) -> ProvisionOutcome:
        """Provision one database.

        Raises:
            KeyError: If the identifier is not configured
            ProvisionError: If the database ends up not queryable
        """
        return self.provisioner.ensure_provisioned(self[identifier])

    def provision_all(self) -> dict[str, Union[ProvisionOutcome, ProvisionError]]:
        """Provision every configured database.

        Returns:
            Identifier -> outcome, or the ProvisionError that database raised
        """
        results: dict[str, Union[ProvisionOutcome, ProvisionError]] = {}
        for identifier, database in self.databases.items():
            logger.info(f"Loading database: {identifier}")
            try:
                outcome = self.provisioner.ensure_provisioned(database)
            except ProvisionError as e:
                logger.error(
                    f"Database {identifier} is unavailable: {e.message}",
                    extra={"identifier": identifier, "code": e.code},
                )
                results[identifier] = e
                continue

            results[identifier] = outcome
            if outcome.degraded:
                logger.warning(
                    f"Database {identifier} is degraded",
                    extra={
                        "identifier": identifier,
                        "stored_version": outcome.stored_version,
                        "expected_version": outcome.expected_version,
                    },
                )

        ready = sum(1 for r in results.values() if isinstance(r, ProvisionOutcome))
        logger.info(
            "Reference databases loaded",
            extra={
                "ready": ready,
                "total": len(results),
                "schema_fingerprint": self.registry.fingerprint,
            },
        )
        return results

    def query(self, identifier: str, sql: str, args: Sequence[Any] = ()) -> list[Row]:
        """Run a read statement against one database."""
        return self[identifier].query(sql, args)

    def exec_sql(self, identifier: str, sql: str, args: Sequence[Any] = ()) -> None:
        """Run a mutating statement against one database."""
        self[identifier].exec_sql(sql, args)

    def close(self) -> None:
        """Close every cached writable connection."""
        for database in self.databases.values():
            database.close()

    def __enter__(self) -> ReferenceCatalog:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
