"""In-process bus connection: keeps exported objects in dicts and records signals."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from protoreg.core.exceptions import (
    BusExportError,
    BusMethodError,
    ERR_UNKNOWN_METHOD,
    ERR_UNKNOWN_OBJECT,
)
from .connection import BusConnection, BusMethod


@dataclass(frozen=True)
class EmittedSignal:
    path: str
    interface: str
    name: str
    args: Tuple[Any, ...]


class InMemoryBus(BusConnection):
    """A bus with no transport behind it.

    ``call`` and ``set_property`` play the part of remote peers, so the registry
    can run headless or under test exactly as it would behind D-Bus.
    """

    def __init__(self, available: bool = True):
        super().__init__()
        self._available = available
        self.fail_exports = False
        self.objects: Dict[str, Dict[str, Dict[str, BusMethod]]] = {}
        self.signals: List[EmittedSignal] = []
        self.log = logging.getLogger(self.__class__.__name__)

    @property
    def available(self) -> bool:
        return self._available

    def export(self, path: str, interface: str, methods: Sequence[BusMethod]) -> None:
        if not self._available:
            raise BusExportError("bus connection is not available")
        if self.fail_exports:
            raise BusExportError(f"export refused for {path}")
        self.objects.setdefault(path, {})[interface] = {m.name: m for m in methods}
        self.log.debug("exported %s on %s", interface, path)

    def unexport(self, path: str) -> None:
        self.objects.pop(path, None)
        self._drop_properties(path)

    def emit(self, path: str, interface: str, name: str, args: Sequence[Any] = (), signature: str = "") -> None:
        if not self._available:
            raise BusMethodError(ERR_UNKNOWN_OBJECT, "bus connection is not available")
        self.signals.append(EmittedSignal(path, interface, name, tuple(args)))

    def close(self) -> None:
        self._available = False

    # ------------------------------------------------------------------ #
    #  Peer-side helpers
    # ------------------------------------------------------------------ #
    async def call(self, path: str, interface: str, method: str, *args: Any) -> Any:
        """Invoke an exported method the way a remote caller would."""
        iface = self.objects.get(path)
        if iface is None:
            raise BusMethodError(ERR_UNKNOWN_OBJECT, f"no object at {path}")
        target = iface.get(interface, {}).get(method)
        if target is None:
            raise BusMethodError(ERR_UNKNOWN_METHOD, f"{interface}.{method} not found on {path}")
        return await target.handler(*args)

    def is_exported(self, path: str) -> bool:
        return path in self.objects

    def signals_named(self, name: str, path: str | None = None) -> List[EmittedSignal]:
        return [s for s in self.signals if s.name == name and (path is None or s.path == path)]
