"""
Provisioning orchestrator for refstore.

The Provisioner turns whatever is at a database's install path into a
queryable file before any collaborator touches it:

    ABSENT         delete an unreadable file, provision from the asset; on
                   failure create the schema (device table + registered
                   DDL) and report DEGRADED
    STALE          replace from the asset; on failure run the same DDL
                   against the stale file and report DEGRADED
    OVERVERSIONED  delete the file, provision; on failure leave it absent and
                   raise ProvisionError
    CURRENT        nothing to do

Invariants:
    - One attempt per call; callers that want retries call again
    - An unreadable file is deleted and handled as ABSENT, never surfaced
    - After success the file is CURRENT or DEGRADED, never ABSENT
    - After OVERVERSIONED the file is never left with stored > expected

How to change safely:
    - Report every detection, transition and error to the observer
    - Keep the copier free of state decisions; it only copies and stamps
"""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING, Optional

from ..errors import CopyError, ProvisionError, RefStoreError, VersionReadError
from ..schema.builtin import DEVICE_REGISTRY_ID
from .copier import DEFAULT_BUFFER_SIZE, AssetCopier
from .observer import LoggingObserver, ProvisionObserver
from .types import ProvisionEvent, ProvisionOutcome, ProvisionState
from .version import read_version

if TYPE_CHECKING:
    from ..store import ReferenceDatabase

logger = logging.getLogger(__name__)


class Provisioner:
    """Drives the provisioning state machine for reference databases.

    Attributes:
        copier: AssetCopier used for provision and replace
        observer: Receives every provisioning event

    Example:
        >>> provisioner = Provisioner(buffer_size=4096)
        >>> outcome = provisioner.ensure_provisioned(db)
        >>> outcome.state
        <ProvisionState.CURRENT: 'current'>
    """

    def __init__(
        self,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        observer: Optional[ProvisionObserver] = None,
        copier: Optional[AssetCopier] = None,
    ) -> None:
        self.copier = copier or AssetCopier(buffer_size)
        self.observer = observer or LoggingObserver()

    # -- inspection ------------------------------------------------------------

    def inspect(self, database: ReferenceDatabase) -> tuple[ProvisionState, Optional[int]]:
        """Classify the install file without changing it.

        Returns:
            (state, stored_version); stored_version is None when ABSENT
        """
        path = database.install_path
        expected = database.descriptor.expected_version

        if not path.exists():
            return ProvisionState.ABSENT, None

        try:
            stored = read_version(path)
        except VersionReadError as e:
            self._emit(database, "unreadable", ProvisionState.ABSENT, error=e)
            return ProvisionState.ABSENT, None

        if stored < expected:
            return ProvisionState.STALE, stored
        if stored > expected:
            return ProvisionState.OVERVERSIONED, stored
        return ProvisionState.CURRENT, stored

    # -- state machine ---------------------------------------------------------

    def ensure_provisioned(self, database: ReferenceDatabase) -> ProvisionOutcome:
        """Bring a database to a queryable state.

        Args:
            database: Database to provision

        Returns:
            ProvisionOutcome with state CURRENT or DEGRADED

        Raises:
            ProvisionError: If the database ends up not queryable
        """
        state, stored = self.inspect(database)
        self._emit(database, "detected", state, stored_version=stored)

        try:
            if state is ProvisionState.CURRENT:
                outcome = self._outcome(database, state, state, stored)
            elif state is ProvisionState.ABSENT:
                outcome = self._provision_absent(database)
            elif state is ProvisionState.STALE:
                outcome = self._replace_stale(database, stored)
            else:
                outcome = self._replace_overversioned(database, stored)
        except ProvisionError:
            database.state = ProvisionState.FAILED
            raise

        database.state = outcome.state
        return outcome

    def _provision_absent(self, database: ReferenceDatabase) -> ProvisionOutcome:
        initial = ProvisionState.ABSENT
        if database.install_path.exists():
            # Unreadable stamp; the file is not a usable database
            self._discard(database, initial, "unreadable")

        try:
            copied = self.copier.provision(database)
        except CopyError as e:
            self._emit(database, "error", initial, error=e)
            self._fallback(database, initial)
            return self._outcome(database, initial, ProvisionState.DEGRADED)

        return self._provisioned(database, initial, copied)

    def _replace_stale(
        self, database: ReferenceDatabase, stored: Optional[int]
    ) -> ProvisionOutcome:
        initial = ProvisionState.STALE
        try:
            copied = self.copier.provision(database)
        except CopyError as e:
            self._emit(database, "error", initial, stored_version=stored, error=e)
            self._fallback(database, initial)
            return self._outcome(database, initial, ProvisionState.DEGRADED)

        return self._provisioned(database, initial, copied)

    def _replace_overversioned(
        self, database: ReferenceDatabase, stored: Optional[int]
    ) -> ProvisionOutcome:
        initial = ProvisionState.OVERVERSIONED
        path = database.install_path
        self._discard(database, initial, "overversioned", stored)

        try:
            copied = self.copier.provision(database)
        except CopyError as e:
            self._emit(database, "error", ProvisionState.ABSENT, error=e)
            # A partial copy must not survive; the database stays absent
            path.unlink(missing_ok=True)
            self._emit(database, "transition", ProvisionState.FAILED, previous_state=initial)
            raise ProvisionError(
                f"Database '{database.identifier}' was deleted as overversioned "
                f"and could not be provisioned again: {e}",
                identifier=database.identifier,
                initial_state=initial.value,
            ) from e

        return self._provisioned(database, initial, copied)

    def _discard(
        self,
        database: ReferenceDatabase,
        initial: ProvisionState,
        reason: str,
        stored: Optional[int] = None,
    ) -> None:
        """Close and delete the install file so provisioning starts from ABSENT.

        Raises:
            ProvisionError: If the file cannot be deleted
        """
        database.close()
        path = database.install_path
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            self._emit(database, "error", initial, stored_version=stored, error=e)
            raise ProvisionError(
                f"Cannot delete {reason} database {path}: {e}",
                identifier=database.identifier,
                initial_state=initial.value,
            ) from e
        self._emit(database, "deleted", ProvisionState.ABSENT, stored_version=stored)

    def _provisioned(
        self, database: ReferenceDatabase, initial: ProvisionState, copied: int
    ) -> ProvisionOutcome:
        self._emit(
            database,
            "transition",
            ProvisionState.CURRENT,
            stored_version=database.descriptor.expected_version,
            previous_state=initial,
        )
        return self._outcome(
            database,
            initial,
            ProvisionState.CURRENT,
            database.descriptor.expected_version,
            bytes_copied=copied,
        )

    def _fallback(self, database: ReferenceDatabase, initial: ProvisionState) -> None:
        """Create the schema in place when the asset could not be copied.

        The device table is always ensured; the identifier's own DDL runs
        when it is registered. Data and version stay as they were.

        Raises:
            ProvisionError: If the schema itself cannot be created
        """
        self._emit(database, "fallback", ProvisionState.DEGRADED, previous_state=initial)
        registry = database.registry
        try:
            database.ensure_table_exists()
            if database.identifier in registry and database.identifier != DEVICE_REGISTRY_ID:
                registry.ensure_schema(database.writable(), database.identifier)
        except (sqlite3.Error, OSError, RefStoreError) as e:
            database.close()
            self._emit(database, "error", ProvisionState.FAILED, error=e)
            raise ProvisionError(
                f"Schema fallback failed for '{database.identifier}': {e}",
                identifier=database.identifier,
                initial_state=initial.value,
            ) from e

        self._emit(database, "transition", ProvisionState.DEGRADED, previous_state=initial)

    # -- forced copy -----------------------------------------------------------

    def reprovision(self, database: ReferenceDatabase) -> bool:
        """Copy the asset over the install file regardless of its state.

        Returns:
            True if the copy succeeded and the file now reads back as CURRENT
        """
        try:
            copied = self.copier.provision(database)
        except CopyError as e:
            self._emit(database, "error", ProvisionState.ABSENT, error=e)
            return False

        state, stored = self.inspect(database)
        if state is not ProvisionState.CURRENT:
            return False

        database.state = state
        self._emit(database, "copied", state, stored_version=stored)
        logger.debug(
            "Reprovisioned",
            extra={"identifier": database.identifier, "bytes": copied},
        )
        return True

    # -- helpers -----------------------------------------------------------------

    def _outcome(
        self,
        database: ReferenceDatabase,
        initial: ProvisionState,
        state: ProvisionState,
        stored: Optional[int] = None,
        bytes_copied: int = 0,
    ) -> ProvisionOutcome:
        if state is ProvisionState.DEGRADED:
            stored = self._stored_version(database)
        return ProvisionOutcome(
            identifier=database.identifier,
            initial_state=initial,
            state=state,
            stored_version=stored,
            expected_version=database.descriptor.expected_version,
            bytes_copied=bytes_copied,
        )

    def _stored_version(self, database: ReferenceDatabase) -> Optional[int]:
        try:
            return read_version(database.install_path)
        except VersionReadError:
            return None

    def _emit(
        self,
        database: ReferenceDatabase,
        kind: str,
        state: ProvisionState,
        stored_version: Optional[int] = None,
        previous_state: Optional[ProvisionState] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.observer.notify(
            ProvisionEvent(
                identifier=database.identifier,
                kind=kind,
                state=state,
                stored_version=stored_version,
                expected_version=database.descriptor.expected_version,
                previous_state=previous_state,
                error=error,
            )
        )
