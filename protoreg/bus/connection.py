"""
Bus connection contract.

The registry never talks to a transport directly: it goes through a
``BusConnection``, which can export objects (a set of named methods under an
interface at an object path), publish property tables, and emit signals.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from protoreg.core.exceptions import (
    BusMethodError,
    ERR_INVALID_ARGS,
    ERR_PROPERTY_READ_ONLY,
    ERR_UNKNOWN_OBJECT,
)


class EmitMode(Enum):
    """How a property change is announced on the bus."""
    TRUE = "true"                   # PropertiesChanged with the new value
    INVALIDATES = "invalidates"     # PropertiesChanged listing the name only
    FALSE = "false"                 # no signal


@dataclass(frozen=True)
class BusMethod:
    """A callable exported on an object; ``handler`` is a coroutine function."""
    name: str
    handler: Callable[..., Awaitable[Any]]
    in_signature: str = ""
    out_signature: str = ""


@dataclass
class BusProperty:
    """One entry of an exported property table.

    ``callback`` is invoked with the proposed value before a bus write is
    accepted; raising ``BusMethodError`` rejects the write, returning a value
    stores that value in place of the proposed one.
    """
    value: Any
    signature: str = "s"
    writable: bool = False
    emit: EmitMode = EmitMode.TRUE
    callback: Optional[Callable[[Any], Any]] = None


PropertyTable = Dict[str, BusProperty]


class BusConnection(ABC):
    """Abstract transport used by the bus exporter."""

    def __init__(self):
        self._properties: Dict[str, Dict[str, PropertyTable]] = {}
        self._prop_lock = threading.Lock()

    @property
    @abstractmethod
    def available(self) -> bool:
        """False when there is no live connection to export on."""

    @abstractmethod
    def export(self, path: str, interface: str, methods: Sequence[BusMethod]) -> None:
        """Make ``methods`` callable at ``path``; raises BusExportError."""

    @abstractmethod
    def unexport(self, path: str) -> None:
        """Remove every object and property table exported at ``path``."""

    @abstractmethod
    def emit(self, path: str, interface: str, name: str, args: Sequence[Any] = (), signature: str = "") -> None:
        """Emit signal ``interface.name`` from ``path``."""

    def close(self) -> None:
        """Release the transport."""

    # ------------------------------------------------------------------ #
    #  Property tables (shared by every transport)
    # ------------------------------------------------------------------ #
    def export_properties(self, path: str, interface: str, properties: PropertyTable) -> None:
        """Publish ``properties`` under ``interface`` at ``path``."""
        with self._prop_lock:
            self._properties.setdefault(path, {})[interface] = properties

    def get_property(self, path: str, interface: str, name: str) -> Any:
        return self._lookup_property(path, interface, name).value

    def get_all_properties(self, path: str, interface: str) -> Dict[str, Any]:
        with self._prop_lock:
            table = self._properties.get(path, {}).get(interface, {})
            return {name: prop.value for name, prop in table.items()}

    def set_property(self, path: str, interface: str, name: str, value: Any) -> None:
        """Apply an external write: validate, run the change callback, store, announce."""
        prop = self._lookup_property(path, interface, name)
        if not prop.writable:
            raise BusMethodError(ERR_PROPERTY_READ_ONLY, f"property {name} is read-only")
        if prop.callback is not None:
            normalized = prop.callback(value)
            if normalized is not None:
                value = normalized
        with self._prop_lock:
            prop.value = value
        self._announce_property(path, interface, name, prop)

    def _lookup_property(self, path: str, interface: str, name: str) -> BusProperty:
        with self._prop_lock:
            table = self._properties.get(path)
            if table is None:
                raise BusMethodError(ERR_UNKNOWN_OBJECT, f"no properties exported at {path}")
            prop = table.get(interface, {}).get(name)
        if prop is None:
            raise BusMethodError(ERR_INVALID_ARGS, f"no property {interface}.{name}")
        return prop

    def _drop_properties(self, path: str) -> None:
        with self._prop_lock:
            self._properties.pop(path, None)

    def _announce_property(self, path: str, interface: str, name: str, prop: BusProperty) -> None:
        if prop.emit is EmitMode.FALSE:
            return
        changed = {name: prop.value} if prop.emit is EmitMode.TRUE else {}
        invalidated = [name] if prop.emit is EmitMode.INVALIDATES else []
        self.emit(path, "org.freedesktop.DBus.Properties", "PropertiesChanged",
                  (interface, changed, invalidated), "sa{sv}as")
