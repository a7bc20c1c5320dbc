"""
Provisioning states, outcomes and events.

State machine:

    file missing / version unreadable ──▶ ABSENT ───────┐
    stored < expected ──────────────────▶ STALE ────────┤
    stored > expected ──────────────────▶ OVERVERSIONED ┤
    stored == expected ─────────────────▶ CURRENT       │
                                                        ▼
                       copy ok ──▶ CURRENT   copy failed ──▶ DEGRADED | FAILED

Terminal states are CURRENT and DEGRADED (queryable) and FAILED (not
queryable). Every transition is one-shot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ProvisionState(Enum):
    """Provisioning state of one database."""

    ABSENT = "absent"
    STALE = "stale"
    OVERVERSIONED = "overversioned"
    CURRENT = "current"
    DEGRADED = "degraded"
    FAILED = "failed"

    @property
    def queryable(self) -> bool:
        return self in (ProvisionState.CURRENT, ProvisionState.DEGRADED)


@dataclass(frozen=True)
class ProvisionOutcome:
    """Result of a successful ensure_provisioned() call.

    Attributes:
        identifier: Database identifier
        initial_state: State detected before any action
        state: Terminal state (CURRENT or DEGRADED)
        stored_version: Version stamp on disk after provisioning
        expected_version: Version the descriptor expects
        bytes_copied: Bytes copied from the asset (0 when nothing was copied)
    """

    identifier: str
    initial_state: ProvisionState
    state: ProvisionState
    stored_version: Optional[int]
    expected_version: int
    bytes_copied: int = 0

    @property
    def degraded(self) -> bool:
        """True when the schema exists but version and data were not refreshed."""
        return self.state is ProvisionState.DEGRADED


@dataclass(frozen=True)
class ProvisionEvent:
    """Something the provisioner reports to its observer.

    Attributes:
        identifier: Database identifier
        kind: Event name (detected, unreadable, transition, copied, deleted,
            fallback, error)
        state: State the event refers to
        stored_version: Version read from disk, when known
        expected_version: Version the descriptor expects
        previous_state: Source state for transitions
        error: Exception for error events
    """

    identifier: str
    kind: str
    state: ProvisionState
    stored_version: Optional[int] = None
    expected_version: Optional[int] = None
    previous_state: Optional[ProvisionState] = None
    error: Optional[BaseException] = None
