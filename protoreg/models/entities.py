from __future__ import annotations
import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

from protoreg.core.patterns.observer import ChangeType

if TYPE_CHECKING:                                   # pragma: no cover
    from protoreg.protocols.protocol import Protocol


###############################################################################
# 1. ITEM ---------------------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class Item:
    """Smallest addressable leaf, identified by (device_id, item_id)."""
    device_id: str
    item_id: str

###############################################################################
# 2. DEVICE -------------------------------------------------------------------
###############################################################################

@dataclass(eq=False)
class Device:
    """A device registered on a protocol; owns its items behind its own lock."""
    device_id: str
    com_id: str
    type_id: str
    type_version: str
    options: bytes = b""
    path: str = ""
    protocol: Optional["Protocol"] = field(default=None, repr=False)
    items: Dict[str, Item] = field(default_factory=dict, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    _removed: bool = field(default=False, repr=False)

    # ---------- items ------------------------------------------------------ #
    async def add_item(self, item_id: str) -> bool:
        """Add ``item_id``; returns True (and changes nothing) if it already exists.

        A device that has been removed from its protocol ignores the call and
        also reports True.
        """
        async with self._lock:
            if self._removed:
                return True
            if item_id in self.items:
                return True
            item = Item(self.device_id, item_id)
            self.items[item_id] = item
            if self.protocol is not None:
                self.protocol.notifier.publish(ChangeType.ITEM_ADDED, item_id, item)
                self.protocol.exporter.emit_item_added(self.path, item_id)
        return False

    async def remove_item(self, item_id: str) -> None:
        """Remove ``item_id``; unknown ids are ignored."""
        async with self._lock:
            if self._removed:
                return
            if self.items.pop(item_id, None) is None:
                return
            if self.protocol is not None:
                self.protocol.notifier.publish(ChangeType.ITEM_REMOVED, item_id, self.device_id, item_id)
                self.protocol.exporter.emit_item_removed(self.path, item_id)

    async def clear_items(self) -> int:
        """Drop every item without per-item signals or callbacks.

        The device is dead afterwards: later item calls are no-ops.
        """
        async with self._lock:
            self._removed = True
            count = len(self.items)
            self.items.clear()
        return count

    async def item_ids(self) -> List[str]:
        async with self._lock:
            return list(self.items)

    def item_count(self) -> int:
        return len(self.items)

    @property
    def removed(self) -> bool:
        return self._removed

###############################################################################
# 3. BRIDGE -------------------------------------------------------------------
###############################################################################

@dataclass(eq=False)
class Bridge:
    """A named child protocol nested under the root."""
    bridge_id: str
    protocol: "Protocol"
