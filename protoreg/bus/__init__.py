"""Bus layer: connection contract, transports and the entity exporter."""

from .connection import BusConnection, BusMethod, BusProperty, EmitMode, PropertyTable
from .memory import InMemoryBus, EmittedSignal
from .dbus_connection import DBusConnection
from .exporter import (
    BusExporter,
    escape_path_element,
    PROPERTY_LOG_LEVEL,
    SIGNAL_DEVICE_ADDED,
    SIGNAL_DEVICE_REMOVED,
    SIGNAL_BRIDGE_ADDED,
    SIGNAL_BRIDGE_REMOVED,
    SIGNAL_ITEM_ADDED,
    SIGNAL_ITEM_REMOVED,
)

__all__ = [
    # Contract
    'BusConnection',
    'BusMethod',
    'BusProperty',
    'EmitMode',
    'PropertyTable',

    # Transports
    'InMemoryBus',
    'EmittedSignal',
    'DBusConnection',

    # Exporter
    'BusExporter',
    'escape_path_element',
    'PROPERTY_LOG_LEVEL',
    'SIGNAL_DEVICE_ADDED',
    'SIGNAL_DEVICE_REMOVED',
    'SIGNAL_BRIDGE_ADDED',
    'SIGNAL_BRIDGE_REMOVED',
    'SIGNAL_ITEM_ADDED',
    'SIGNAL_ITEM_REMOVED',
]
