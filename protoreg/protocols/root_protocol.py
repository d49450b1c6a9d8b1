"""
Root protocol
Top-level registry: owns the bridge map and the published LogLevel property.
"""

from typing import Dict, List, Optional

from protoreg.bus.connection import BusProperty, EmitMode, PropertyTable
from protoreg.bus.exporter import BusExporter, PROPERTY_LOG_LEVEL
from protoreg.core.exceptions import BusMethodError, ERR_INVALID_ARGS, InvalidLogLevelError
from protoreg.core.log_level import LogLevelState
from protoreg.core.patterns.observer import CallbackNotifier
from protoreg.models.entities import Bridge
from .protocol import Protocol


class RootProtocol(Protocol):
    """
    The root registry scope.

    The bridge map is guarded by the root's own lock; each bridge is a full
    ``Protocol`` with its own lock, always taken after the root's.
    """

    def __init__(self, exporter: BusExporter, log_level: LogLevelState,
                 notifier: Optional[CallbackNotifier] = None):
        super().__init__(exporter.root_path(), exporter, notifier)
        self.log_level = log_level
        self._bridges: Dict[str, Bridge] = {}

    def export(self) -> bool:
        """Publish the root object and its property table."""
        return self.exporter.export_root(self, self._property_table())

    # --------------------------------------------------------------------- #
    #  Bridges
    # --------------------------------------------------------------------- #
    async def add_bridge(self, bridge_id: str) -> bool:
        """Create a bridge protocol; returns True (and changes nothing) if it already exists."""
        async with self._lock:
            if bridge_id in self._bridges:
                return True
            proto = Protocol(self.exporter.bridge_path(bridge_id), self.exporter, self.notifier)
            self.exporter.export_protocol(proto)
            self._bridges[bridge_id] = Bridge(bridge_id=bridge_id, protocol=proto)
            self.exporter.emit_bridge_added(bridge_id)
            self.log.info("bridge %s added at %s", bridge_id, proto.path)
        return False

    async def remove_bridge(self, bridge_id: str) -> None:
        """Remove a bridge after cascading through its devices; unknown ids are ignored."""
        async with self._lock:
            bridge = self._bridges.get(bridge_id)
            if bridge is None:
                return
            removed = await bridge.protocol.remove_all_devices()
            del self._bridges[bridge_id]
            self.exporter.unexport(bridge.protocol.path)
            self.exporter.emit_bridge_removed(bridge_id)
            self.log.info("bridge %s removed (%d devices)", bridge_id, removed)

    async def get_bridge(self, bridge_id: str) -> Optional[Bridge]:
        async with self._lock:
            return self._bridges.get(bridge_id)

    async def bridge_ids(self) -> List[str]:
        async with self._lock:
            return list(self._bridges)

    # --------------------------------------------------------------------- #
    #  LogLevel property
    # --------------------------------------------------------------------- #
    def _property_table(self) -> PropertyTable:
        return {
            PROPERTY_LOG_LEVEL: BusProperty(
                value     = self.log_level.level_name,
                signature = "s",
                writable  = True,
                emit      = EmitMode.TRUE,
                callback  = self._on_log_level_change,
            ),
        }

    def _on_log_level_change(self, value) -> str:
        """Apply a LogLevel write; an unparseable value rejects the write."""
        try:
            name = self.log_level.set_level(value)
        except InvalidLogLevelError as e:
            self.log.error("Refusing LogLevel change: %s", e)
            raise BusMethodError(ERR_INVALID_ARGS, str(e)) from e
        self.log.info("Log level has been set to %s", name)
        return name
