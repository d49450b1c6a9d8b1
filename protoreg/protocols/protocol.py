"""
Protocol registry
A registry scope (the root protocol or one bridge) owning a set of devices.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from protoreg.bus.exporter import BusExporter
from protoreg.core.patterns.observer import CallbackNotifier, ChangeType
from protoreg.models.entities import Device


class Protocol:
    """
    Device registry exported as one bus object.

    One private lock guards the readiness flag and the device map. Every
    structural change (map update, bus export, signal) completes while the lock
    is held; callback notification is queued and runs after.
    """

    def __init__(self, path: str, exporter: BusExporter, notifier: Optional[CallbackNotifier] = None):
        self.path = path
        self.exporter = exporter
        self.notifier = notifier or CallbackNotifier()
        self._devices: Dict[str, Device] = {}
        self._ready = False
        self._lock = asyncio.Lock()
        self.log = logging.getLogger(self.__class__.__name__)

    # --------------------------------------------------------------------- #
    #  Readiness
    # --------------------------------------------------------------------- #
    async def set_ready(self) -> None:
        """One-way transition to ready."""
        async with self._lock:
            if not self._ready:
                self._ready = True
                self.log.info("%s is ready", self.path)

    async def is_ready(self) -> bool:
        async with self._lock:
            return self._ready

    # --------------------------------------------------------------------- #
    #  Devices
    # --------------------------------------------------------------------- #
    async def add_device(self, dev_id: str, com_id: str, type_id: str, type_version: str,
                         options: bytes = b"") -> bool:
        """Register a device; returns True (and changes nothing) if it already exists."""
        async with self._lock:
            if dev_id in self._devices:
                return True
            device = Device(
                device_id    = dev_id,
                com_id       = com_id,
                type_id      = type_id,
                type_version = type_version,
                options      = bytes(options),
                path         = self.exporter.device_path(self.path, dev_id),
                protocol     = self,
            )
            self._devices[dev_id] = device
            self.exporter.export_device(device)
            self.notifier.publish(ChangeType.DEVICE_ADDED, dev_id, device)
            self.exporter.emit_device_added(self.path, dev_id)
            self.log.info("device %s added on %s", dev_id, self.path)
        return False

    async def remove_device(self, dev_id: str) -> None:
        """Remove a device and its items; unknown ids are ignored."""
        async with self._lock:
            await self._remove_device_locked(dev_id)

    async def remove_all_devices(self) -> int:
        """Cascade-remove every device, as when the owning bridge goes away."""
        async with self._lock:
            dev_ids = list(self._devices)
            for dev_id in dev_ids:
                await self._remove_device_locked(dev_id)
        return len(dev_ids)

    async def _remove_device_locked(self, dev_id: str) -> None:
        # caller holds self._lock; the device lock is taken inside clear_items
        device = self._devices.get(dev_id)
        if device is None:
            return
        await device.clear_items()
        self.notifier.publish(ChangeType.DEVICE_REMOVED, dev_id, dev_id)
        del self._devices[dev_id]
        self.exporter.unexport(device.path)
        self.exporter.emit_device_removed(self.path, dev_id)
        self.log.info("device %s removed from %s", dev_id, self.path)

    # --------------------------------------------------------------------- #
    #  Queries
    # --------------------------------------------------------------------- #
    async def get_device(self, dev_id: str) -> Optional[Device]:
        async with self._lock:
            return self._devices.get(dev_id)

    async def device_ids(self) -> List[str]:
        async with self._lock:
            return list(self._devices)

    def device_count(self) -> int:
        return len(self._devices)

    def __repr__(self) -> str:
        return f"<Protocol {self.path} devices={len(self._devices)} ready={self._ready}>"
