"""
Saved Bluetooth devices (printers) in the device registry database.

The dispositivos table is the only reference table the application writes
to. MAC addresses are stored upper case and are unique.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .store import ReferenceDatabase

logger = logging.getLogger(__name__)


def normalize_mac(mac: str) -> str:
    return mac.strip().upper()


@dataclass(frozen=True)
class BluetoothDevice:
    """A Bluetooth device stored in the registry.

    Attributes:
        name: Device display name
        mac: Unique MAC address
    """

    name: str
    mac: str


class DeviceRegistry:
    """CRUD over the dispositivos table of a provisioned database.

    Example:
        >>> devices = DeviceRegistry(catalog["dispositivos.db"])
        >>> devices.save(BluetoothDevice("Zebra ZQ520", "AA:BB:CC:DD:EE:FF"))
        True
        >>> devices.list_devices()
        [BluetoothDevice(name='Zebra ZQ520', mac='AA:BB:CC:DD:EE:FF')]
    """

    def __init__(self, database: ReferenceDatabase) -> None:
        self.database = database

    def save(self, device: BluetoothDevice) -> bool:
        """Store a device unless its MAC is already saved.

        Returns:
            True if a new row was inserted
        """
        mac = normalize_mac(device.mac)
        if self.contains(mac):
            return False
        self.database.exec_sql(
            "INSERT OR IGNORE INTO dispositivos (nombre, mac) VALUES (?, ?)",
            (device.name, mac),
        )
        logger.debug("Saved device", extra={"mac": mac})
        return True

    def remove(self, mac: str) -> None:
        self.database.exec_sql("DELETE FROM dispositivos WHERE mac = ?", (normalize_mac(mac),))

    def clear(self) -> None:
        """Delete every saved device."""
        self.database.exec_sql("DELETE FROM dispositivos")
        logger.info("Cleared saved devices", extra={"identifier": self.database.identifier})

    def contains(self, mac: str) -> bool:
        rows = self.database.query(
            "SELECT COUNT(*) AS total FROM dispositivos WHERE mac = ?",
            (normalize_mac(mac),),
        )
        return int(rows[0]["total"]) > 0

    def list_devices(self) -> list[BluetoothDevice]:
        """All saved devices in insertion order."""
        rows = self.database.query("SELECT nombre, mac FROM dispositivos ORDER BY id")
        return [BluetoothDevice(name=row["nombre"], mac=row["mac"]) for row in rows]
