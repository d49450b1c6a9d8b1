"""
Observer Pattern Implementation for Registry Changes

This module implements the application callback interface and the notifier
that dispatches registry add/remove events to it. Dispatch is detached from
the registry locks: the registry only enqueues, a single worker task delivers.
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple
from dataclasses import dataclass, field
from enum import Enum


class ChangeType(Enum):
    """Types of registry changes, valued by the callback method they invoke."""
    DEVICE_ADDED = "add_device"
    DEVICE_REMOVED = "remove_device"
    ITEM_ADDED = "add_item"
    ITEM_REMOVED = "remove_item"


@dataclass
class NotificationEvent:
    """A single pending callback invocation."""
    change_type: ChangeType
    entity_id: str
    args: Tuple[Any, ...] = field(default_factory=tuple)


class ProtocolCallbacks(ABC):
    """Application hooks called after the registry changes.

    Implementations may use plain methods or coroutines. Plain methods run in a
    worker thread, so they may block without stalling the event loop.
    """

    @abstractmethod
    def add_device(self, device) -> None:
        """A device was added to a protocol."""

    @abstractmethod
    def remove_device(self, device_id: str) -> None:
        """A device (and all its items) was removed."""

    @abstractmethod
    def add_item(self, item) -> None:
        """An item was added to a device."""

    @abstractmethod
    def remove_item(self, device_id: str, item_id: str) -> None:
        """An item was removed from a device."""


class CallbackNotifier:
    """Fire-and-forget delivery of registry events to ``ProtocolCallbacks``.

    Events are delivered at most once, in publish order, by one worker task.
    Publishing never waits: when the queue is full the event is dropped.
    """

    def __init__(self, callbacks: Optional[ProtocolCallbacks] = None, max_queue_size: int = 1000):
        self._callbacks = callbacks
        self._event_queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._processing_task: Optional[asyncio.Task] = None
        self._running = False
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def callbacks(self) -> Optional[ProtocolCallbacks]:
        return self._callbacks

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the event processing loop."""
        if self._running:
            self._logger.warning("Notifier is already running")
            return

        self._running = True
        self._processing_task = asyncio.create_task(self._process_events())
        self._logger.info("Notifier started")

    async def stop(self, timeout: float = 5.0) -> None:
        """Deliver what is already queued, then stop the processing loop.

        Waits at most ``timeout`` seconds for the queue to drain; events still
        pending after that are discarded.
        """
        if not self._running:
            self._logger.warning("Notifier is not running")
            return

        try:
            await asyncio.wait_for(self._event_queue.join(), timeout)
        except asyncio.TimeoutError:
            self._logger.warning(f"Notifier stop timed out, discarding {self.get_queue_size()} pending events")
        self._running = False

        if self._processing_task:
            self._processing_task.cancel()
            try:
                await self._processing_task
            except asyncio.CancelledError:
                pass
            self._processing_task = None

        self._logger.info("Notifier stopped")

    def publish(self, change_type: ChangeType, entity_id: str, *args: Any) -> bool:
        """Queue a callback invocation without waiting for it.

        Returns False when nothing was queued (no callbacks or queue full).
        """
        if self._callbacks is None:
            return False
        event = NotificationEvent(change_type, entity_id, args)
        try:
            self._event_queue.put_nowait(event)
        except asyncio.QueueFull:
            self._logger.error(f"Notification queue full, dropping event: {change_type} for {entity_id}")
            return False
        self._logger.debug(f"Published event: {change_type} for {entity_id}")
        return True

    async def join(self) -> None:
        """Wait until every queued event has been delivered."""
        await self._event_queue.join()

    def get_queue_size(self) -> int:
        """Get current event queue size."""
        return self._event_queue.qsize()

    async def _process_events(self) -> None:
        self._logger.debug("Started event processing loop")
        while True:
            event = await self._event_queue.get()
            try:
                await self._safe_notify(event)
            finally:
                self._event_queue.task_done()

    async def _safe_notify(self, event: NotificationEvent) -> None:
        """Invoke one callback, catching and logging any exception."""
        callback = getattr(self._callbacks, event.change_type.value)
        try:
            if inspect.iscoroutinefunction(callback):
                await callback(*event.args)
            else:
                await asyncio.to_thread(callback, *event.args)
            self._logger.debug(f"Delivered {event.change_type} for {event.entity_id}")
        except Exception as e:
            self._logger.error(f"Error in {event.change_type.value} callback for {event.entity_id}: {e}", exc_info=True)
