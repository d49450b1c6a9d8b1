"""
Bus Exporter
Publishes registry entities as bus objects at deterministic paths and emits
the structural-change signals.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List

from protoreg.core.exceptions import BusError, BusMethodError, ERR_INVALID_ARGS
from .connection import BusConnection, BusMethod, PropertyTable

if TYPE_CHECKING:                                   # pragma: no cover
    from protoreg.models.entities import Device
    from protoreg.protocols.protocol import Protocol
    from protoreg.protocols.root_protocol import RootProtocol


SIGNAL_DEVICE_ADDED   = "DeviceAdded"
SIGNAL_DEVICE_REMOVED = "DeviceRemoved"
SIGNAL_BRIDGE_ADDED   = "BridgeAdded"
SIGNAL_BRIDGE_REMOVED = "BridgeRemoved"
SIGNAL_ITEM_ADDED     = "ItemAdded"
SIGNAL_ITEM_REMOVED   = "ItemRemoved"

PROPERTY_LOG_LEVEL = "LogLevel"


def escape_path_element(value: str) -> str:
    """Escape ``value`` into the D-Bus object path alphabet ``[A-Za-z0-9_]``.

    Every byte outside ``[A-Za-z0-9]``, ``_`` included, becomes ``_xx`` so the
    mapping is one-to-one.
    """
    if not value:
        return "_"
    out = []
    for byte in value.encode("utf-8"):
        ch = chr(byte)
        if ch.isascii() and ch.isalnum():
            out.append(ch)
        else:
            out.append(f"_{byte:02x}")
    return "".join(out)


def _require_id(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise BusMethodError(ERR_INVALID_ARGS, f"{what} must be a non-empty string")
    return value


def _require_bytes(value: Any) -> bytes:
    if isinstance(value, int):
        raise BusMethodError(ERR_INVALID_ARGS, "options must be a byte array")
    try:
        return bytes(value)
    except (TypeError, ValueError) as e:
        raise BusMethodError(ERR_INVALID_ARGS, f"options must be a byte array: {e}") from None


class BusExporter:
    """Maps entities onto a ``BusConnection``.

    Export failures never propagate: they are logged and reported as ``False``
    so the registry keeps working without its bus mirror.
    """

    def __init__(self, connection: BusConnection, protocol_name: str, path_prefix: str,
                 interface: str, device_interface: str):
        self.connection = connection
        self.protocol_name = protocol_name
        self.path_prefix = path_prefix
        self.interface = interface
        self.device_interface = device_interface
        self.log = logging.getLogger(self.__class__.__name__)

    # --------------------------------------------------------------------- #
    #  Paths
    # --------------------------------------------------------------------- #
    def root_path(self) -> str:
        return self.path_prefix + escape_path_element(self.protocol_name)

    def bridge_path(self, bridge_id: str) -> str:
        return self.path_prefix + escape_path_element(self.protocol_name) + "_" + escape_path_element(bridge_id)

    def device_path(self, protocol_path: str, device_id: str) -> str:
        return f"{protocol_path}/{escape_path_element(device_id)}"

    # --------------------------------------------------------------------- #
    #  Export / unexport
    # --------------------------------------------------------------------- #
    def export_protocol(self, protocol: "Protocol") -> bool:
        return self._export(protocol.path, self.interface, self._protocol_methods(protocol))

    def export_root(self, root: "RootProtocol", properties: PropertyTable) -> bool:
        """Export the root object with its bridge methods and property table."""
        if not self.connection.available:
            self.log.warning("Unable to export root protocol object because bus connection is unavailable")
            return False
        try:
            self.connection.export_properties(root.path, self.interface, properties)
        except BusError as e:
            self.log.error("Fail to export the properties of the protocol %s: %s", root.path, e)
        methods = self._protocol_methods(root) + self._bridge_methods(root)
        return self._export(root.path, self.interface, methods)

    def export_device(self, device: "Device") -> bool:
        return self._export(device.path, self.device_interface, self._device_methods(device))

    def unexport(self, path: str) -> None:
        try:
            self.connection.unexport(path)
        except BusError as e:
            self.log.warning("Fail to unexport %s: %s", path, e)

    def _export(self, path: str, interface: str, methods: List[BusMethod]) -> bool:
        if not self.connection.available:
            self.log.warning("Unable to export %s because bus connection is unavailable", path)
            return False
        try:
            self.connection.export(path, interface, methods)
        except BusError as e:
            self.log.warning("Fail to export bus object %s: %s", path, e)
            return False
        self.log.debug("exported %s at %s", interface, path)
        return True

    # --------------------------------------------------------------------- #
    #  Signals
    # --------------------------------------------------------------------- #
    def emit(self, path: str, signal: str, *args: Any, interface: str | None = None) -> None:
        signature = "s" * len(args)
        try:
            self.connection.emit(path, interface or self.interface, signal, args, signature)
        except BusError as e:
            self.log.warning("Fail to emit %s on %s: %s", signal, path, e)

    def emit_device_added(self, protocol_path: str, device_id: str) -> None:
        self.emit(protocol_path, SIGNAL_DEVICE_ADDED, device_id)

    def emit_device_removed(self, protocol_path: str, device_id: str) -> None:
        self.emit(protocol_path, SIGNAL_DEVICE_REMOVED, device_id)

    def emit_bridge_added(self, bridge_id: str) -> None:
        self.emit(self.bridge_path(bridge_id), SIGNAL_BRIDGE_ADDED)

    def emit_bridge_removed(self, bridge_id: str) -> None:
        self.emit(self.bridge_path(bridge_id), SIGNAL_BRIDGE_REMOVED)

    def emit_item_added(self, device_path: str, item_id: str) -> None:
        self.emit(device_path, SIGNAL_ITEM_ADDED, item_id, interface=self.device_interface)

    def emit_item_removed(self, device_path: str, item_id: str) -> None:
        self.emit(device_path, SIGNAL_ITEM_REMOVED, item_id, interface=self.device_interface)

    # --------------------------------------------------------------------- #
    #  Method tables
    # --------------------------------------------------------------------- #
    @staticmethod
    def _protocol_methods(protocol: "Protocol") -> List[BusMethod]:
        async def is_ready():
            return await protocol.is_ready()

        async def add_device(dev_id, com_id, type_id, type_version, options):
            return await protocol.add_device(
                _require_id(dev_id, "device id"), str(com_id), str(type_id),
                str(type_version), _require_bytes(options),
            )

        async def remove_device(dev_id):
            await protocol.remove_device(_require_id(dev_id, "device id"))

        return [
            BusMethod("IsReady", is_ready, "", "b"),
            BusMethod("AddDevice", add_device, "ssssay", "b"),
            BusMethod("RemoveDevice", remove_device, "s", ""),
        ]

    @staticmethod
    def _bridge_methods(root: "RootProtocol") -> List[BusMethod]:
        async def add_bridge(bridge_id):
            return await root.add_bridge(_require_id(bridge_id, "bridge id"))

        async def remove_bridge(bridge_id):
            await root.remove_bridge(_require_id(bridge_id, "bridge id"))

        return [
            BusMethod("AddBridge", add_bridge, "s", "b"),
            BusMethod("RemoveBridge", remove_bridge, "s", ""),
        ]

    @staticmethod
    def _device_methods(device: "Device") -> List[BusMethod]:
        async def add_item(item_id):
            return await device.add_item(_require_id(item_id, "item id"))

        async def remove_item(item_id):
            await device.remove_item(_require_id(item_id, "item id"))

        return [
            BusMethod("AddItem", add_item, "s", "b"),
            BusMethod("RemoveItem", remove_item, "s", ""),
        ]
