"""
Centralised exception definitions for the protocol registry.
All custom exceptions should inherit from ProtoRegError.
"""

class ProtoRegError(Exception):
    """Base class for every custom exception thrown by this project."""

class ConfigurationError(ProtoRegError):
    """Raised when configuration files or environment variables are invalid."""

class InvalidLogLevelError(ProtoRegError, ValueError):
    """Raised when a log verbosity name cannot be parsed."""

class BusError(ProtoRegError):
    """Generic failure inside the bus layer (D-Bus, in-memory, …)."""

class BusExportError(BusError):
    """Raised by a bus connection when an object or property table cannot be exported."""


# D-Bus error names used when replying to callers
ERR_INVALID_ARGS   = "org.freedesktop.DBus.Error.InvalidArgs"
ERR_UNKNOWN_METHOD = "org.freedesktop.DBus.Error.UnknownMethod"
ERR_UNKNOWN_OBJECT = "org.freedesktop.DBus.Error.UnknownObject"
ERR_PROPERTY_READ_ONLY = "org.freedesktop.DBus.Error.PropertyReadOnly"
ERR_FAILED         = "org.freedesktop.DBus.Error.Failed"


class BusMethodError(BusError):
    """Error returned to a bus caller, carrying a D-Bus error name."""

    def __init__(self, name: str, message: str = ""):
        super().__init__(f"{name}: {message}" if message else name)
        self.name = name
        self.message = message
