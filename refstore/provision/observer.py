"""
Observers for provisioning events.

The provisioner never logs directly; it reports every state detection,
transition and error to an injected ProvisionObserver. LoggingObserver is the
default and writes to the standard logging module with structured extras.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from .types import ProvisionEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class ProvisionObserver(Protocol):
    """Receives provisioning events."""

    def notify(self, event: ProvisionEvent) -> None:
        ...


class LoggingObserver:
    """Writes provisioning events to a logger.

    Errors log at ERROR, fallbacks and unreadable stamps at WARNING,
    everything else at INFO (DEBUG for state detection).
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def notify(self, event: ProvisionEvent) -> None:
        extra = {
            "identifier": event.identifier,
            "state": event.state.value,
            "stored_version": event.stored_version,
            "expected_version": event.expected_version,
        }
        if event.previous_state is not None:
            extra["previous_state"] = event.previous_state.value

        if event.kind == "error":
            self._log.error(
                f"Provisioning error for {event.identifier} in state "
                f"{event.state.value}: {event.error}",
                extra=extra,
            )
        elif event.kind == "fallback":
            self._log.warning(
                f"Falling back to schema for {event.identifier}; "
                "data and version were not refreshed",
                extra=extra,
            )
        elif event.kind == "unreadable":
            self._log.warning(
                f"Version of {event.identifier} is unreadable ({event.error}); "
                "treating it as absent",
                extra=extra,
            )
        elif event.kind == "detected":
            self._log.debug(f"Detected state for {event.identifier}", extra=extra)
        else:
            self._log.info(f"Provisioning {event.kind}: {event.identifier}", extra=extra)


class RecordingObserver:
    """Keeps every event in memory; handy for tests and diagnostics."""

    def __init__(self) -> None:
        self.events: list[ProvisionEvent] = []

    def notify(self, event: ProvisionEvent) -> None:
        self.events.append(event)

    def kinds(self, identifier: str | None = None) -> list[str]:
        return [
            e.kind for e in self.events if identifier is None or e.identifier == identifier
        ]
