# protoreg/core/__init__.py
"""Core infrastructure components for the protocol registry."""

# Import order: most fundamental to most specific

from .exceptions import (
    ProtoRegError,
    ConfigurationError,
    InvalidLogLevelError,
    BusError,
    BusExportError,
    BusMethodError,
)

from .log_level import LogLevelState, parse_level
from .patterns.observer import (
    ChangeType,
    NotificationEvent,
    ProtocolCallbacks,
    CallbackNotifier,
)


__all__ = [
    "ProtoRegError",
    "ConfigurationError",
    "InvalidLogLevelError",
    "BusError",
    "BusExportError",
    "BusMethodError",
    "LogLevelState",
    "parse_level",
    "ChangeType",
    "NotificationEvent",
    "ProtocolCallbacks",
    "CallbackNotifier",
]
