"""
Provision module for refstore - asset copy and version management.

This module handles:
- Reading and writing the version stamp of installed files
- Copying bundled assets to their install paths
- The provisioning state machine (absent/stale/overversioned/current)
- Provisioning events for observers

Invariants:
    - Provisioning is synchronous and single-attempt
    - Corrupt version stamps are treated as absent files
    - Partially copied files are not rolled back by the copier
"""

from .copier import AssetCopier
from .observer import LoggingObserver, ProvisionObserver, RecordingObserver
from .orchestrator import Provisioner
from .types import ProvisionEvent, ProvisionOutcome, ProvisionState
from .version import read_version, write_version

__all__ = [
    "AssetCopier",
    "Provisioner",
    "ProvisionState",
    "ProvisionOutcome",
    "ProvisionEvent",
    "ProvisionObserver",
    "LoggingObserver",
    "RecordingObserver",
    "read_version",
    "write_version",
]
