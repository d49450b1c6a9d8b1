"""Registry wiring: bus exporter, notifier and root protocol, started and stopped together."""
from __future__ import annotations
import logging
from typing import Optional

from config.app_config import settings
from protoreg.bus.connection import BusConnection
from protoreg.bus.exporter import BusExporter
from protoreg.core.log_level import LogLevelState
from protoreg.core.patterns.observer import CallbackNotifier, ProtocolCallbacks
from protoreg.protocols.root_protocol import RootProtocol


class RegistryService:
    """Owns one registry tree mirrored on one bus connection."""

    def __init__(self, connection: BusConnection, *,
                 protocol_name: str,
                 path_prefix: str,
                 interface: str,
                 device_interface: str,
                 log_level: Optional[LogLevelState] = None,
                 callbacks: Optional[ProtocolCallbacks] = None,
                 queue_size: int = 1000):
        self.log       = logging.getLogger(self.__class__.__name__)
        self.connection = connection
        self.log_level = log_level or LogLevelState()
        self.exporter  = BusExporter(connection, protocol_name, path_prefix, interface, device_interface)
        self.notifier  = CallbackNotifier(callbacks, max_queue_size=queue_size)
        self.root      = RootProtocol(self.exporter, self.log_level, self.notifier)
        self.exported  = False

    @classmethod
    def from_settings(cls, connection: BusConnection,
                      callbacks: Optional[ProtocolCallbacks] = None,
                      log_level: Optional[LogLevelState] = None) -> "RegistryService":
        settings.validate()
        return cls(
            connection,
            protocol_name    = settings.PROTOCOL_NAME,
            path_prefix      = settings.DBUS_PATH_PREFIX,
            interface        = settings.DBUS_INTERFACE,
            device_interface = settings.DBUS_DEVICE_INTERFACE,
            log_level        = log_level or LogLevelState(settings.LOG_LEVEL),
            callbacks        = callbacks,
            queue_size       = settings.NOTIFY_QUEUE_SIZE,
        )

    # --------------------------------------------------------------------- #
    #  Public API
    # --------------------------------------------------------------------- #
    async def start(self) -> bool:
        """Start notification delivery and export the root object.

        Returns False when the root object could not be exported; the registry
        is still usable in-process in that case.
        """
        await self.notifier.start()
        self.exported = self.root.export()
        if self.exported:
            self.log.info("registry ready at %s", self.root.path)
        else:
            self.log.warning("registry running without a bus mirror for %s", self.root.path)
        return self.exported

    async def stop(self) -> None:
        """Unexport every object and drain pending notifications."""
        for bridge_id in await self.root.bridge_ids():
            await self.root.remove_bridge(bridge_id)
        for dev_id in await self.root.device_ids():
            await self.root.remove_device(dev_id)
        if self.exported:
            self.exporter.unexport(self.root.path)
            self.exported = False
        if self.notifier.running:
            await self.notifier.stop()
        self.log.info("registry stopped")
