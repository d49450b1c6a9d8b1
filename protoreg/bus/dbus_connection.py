"""
D-Bus transport (dbus-python).

dbus-python dispatches method calls on a GLib main loop, which runs in its own
thread here. Each call is handed to the asyncio loop that owns the registry with
``run_coroutine_threadsafe`` and answered through dbus-python's async callbacks,
so registry code only ever runs on the asyncio loop.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Dict, Optional, Sequence

from protoreg.core.exceptions import BusExportError, BusError, BusMethodError, ERR_FAILED
from .connection import BusConnection, BusMethod


PROPERTIES_IFACE = "org.freedesktop.DBus.Properties"


class DBusConnection(BusConnection):
    """``BusConnection`` backed by the session or system bus."""

    def __init__(self, loop: asyncio.AbstractEventLoop, bus: str = "session",
                 service_name: Optional[str] = None):
        super().__init__()
        self._loop = loop
        self._bus_kind = bus
        self._service_name = service_name
        self._dbus: Any = None
        self._bus: Any = None
        self._bus_name: Any = None
        self._mainloop: Any = None
        self._thread: Optional[threading.Thread] = None
        self._objects: Dict[str, list] = {}
        self._types: Dict[str, Dict[str, type]] = {}
        self._lock = threading.Lock()
        self.log = logging.getLogger(self.__class__.__name__)

    @property
    def available(self) -> bool:
        return self._bus is not None

    # --------------------------------------------------------------------- #
    #  Connection lifecycle
    # --------------------------------------------------------------------- #
    def connect(self) -> bool:
        """Open the bus, claim the service name and start the GLib loop thread."""
        try:
            import dbus
            import dbus.exceptions
            import dbus.lowlevel
            import dbus.service
            from dbus.mainloop.glib import DBusGMainLoop, threads_init
            from gi.repository import GLib
        except ImportError as e:
            self.log.warning("D-Bus support is not installed: %s", e)
            return False

        threads_init()
        DBusGMainLoop(set_as_default=True)
        try:
            bus = dbus.SystemBus() if self._bus_kind == "system" else dbus.SessionBus()
            if self._service_name:
                self._bus_name = dbus.service.BusName(self._service_name, bus)
        except dbus.exceptions.DBusException as e:
            self.log.warning("Unable to connect to the %s bus: %s", self._bus_kind, e)
            return False

        self._dbus = dbus
        self._bus = bus
        self._mainloop = GLib.MainLoop()
        self._thread = threading.Thread(target=self._mainloop.run, name="dbus-mainloop", daemon=True)
        self._thread.start()
        self.log.info("connected to the %s bus as %s", self._bus_kind, self._service_name or bus.get_unique_name())
        return True

    def close(self) -> None:
        with self._lock:
            paths = list(self._objects)
        for path in paths:
            self.unexport(path)
        if self._mainloop is not None:
            self._mainloop.quit()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
        self._bus_name = None
        self._bus = None
        self.log.info("D-Bus connection closed")

    # --------------------------------------------------------------------- #
    #  BusConnection
    # --------------------------------------------------------------------- #
    def export(self, path: str, interface: str, methods: Sequence[BusMethod]) -> None:
        if self._bus is None:
            raise BusExportError("D-Bus connection is not open")
        table = {m.name: m for m in methods}
        kinds = self._service_types(interface)
        if "AddBridge" in table:
            cls = kinds["root"]
        elif "AddDevice" in table:
            cls = kinds["protocol"]
        elif "AddItem" in table:
            cls = kinds["device"]
        else:
            raise BusExportError(f"no D-Bus object type for methods {sorted(table)}")
        try:
            obj = cls(self, path, table)
        except (KeyError, ValueError, self._dbus.exceptions.DBusException) as e:
            raise BusExportError(f"cannot export {path}: {e}") from e
        with self._lock:
            self._objects.setdefault(path, []).append(obj)

    def unexport(self, path: str) -> None:
        with self._lock:
            objs = self._objects.pop(path, [])
        for obj in objs:
            try:
                obj.remove_from_connection()
            except LookupError as e:
                self.log.debug("object at %s already gone: %s", path, e)
        self._drop_properties(path)

    def emit(self, path: str, interface: str, name: str, args: Sequence[Any] = (), signature: str = "") -> None:
        if self._bus is None:
            raise BusError("D-Bus connection is not open")
        msg = self._dbus.lowlevel.SignalMessage(path, interface, name)
        if args:
            msg.append(*args, signature=signature or None)
        self._bus.send_message(msg)

    # --------------------------------------------------------------------- #
    #  Dispatch helpers used by the exported objects
    # --------------------------------------------------------------------- #
    def _dispatch(self, method: BusMethod, args: tuple, reply, error) -> None:
        future = asyncio.run_coroutine_threadsafe(method.handler(*args), self._loop)

        def done(fut):
            if fut.cancelled():
                error(self._to_dbus_error(BusMethodError(ERR_FAILED, f"{method.name} cancelled")))
                return
            exc = fut.exception()
            if exc is not None:
                if not isinstance(exc, BusMethodError):
                    self.log.error("Unhandled error in %s: %s", method.name, exc, exc_info=exc)
                error(self._to_dbus_error(exc))
            elif method.out_signature:
                reply(fut.result())
            else:
                reply()

        future.add_done_callback(done)

    def _to_dbus_error(self, exc: BaseException):
        if isinstance(exc, BusMethodError):
            return self._dbus.exceptions.DBusException(exc.message or exc.name, name=exc.name)
        return self._dbus.exceptions.DBusException(str(exc), name=ERR_FAILED)

    def _service_types(self, interface: str) -> Dict[str, type]:
        with self._lock:
            if interface not in self._types:
                self._types[interface] = _build_service_types(self._dbus, interface)
            return self._types[interface]


def _build_service_types(dbus, interface: str) -> Dict[str, type]:
    """Create the dbus.service classes for ``interface``.

    dbus-python binds the interface name at class creation, so the classes are
    built once per interface after the library has been imported.
    """
    service = dbus.service
    async_cb = ("reply", "error")

    class _Exported(service.Object):
        def __init__(self, conn: DBusConnection, path: str, methods: Dict[str, BusMethod]):
            self._conn = conn
            self._export_path = path
            self._methods = methods
            service.Object.__init__(self, conn._bus, path)

        def _call(self, name, args, reply, error):
            method = self._methods.get(name)
            if method is None:
                error(dbus.exceptions.DBusException(
                    f"{name} is not available on {self._export_path}",
                    name="org.freedesktop.DBus.Error.UnknownMethod"))
                return
            self._conn._dispatch(method, args, reply, error)

        def _property_call(self, fn, *args):
            try:
                return fn(self._export_path, *args)
            except BusMethodError as e:
                raise self._conn._to_dbus_error(e) from e

        @service.method(PROPERTIES_IFACE, in_signature="ss", out_signature="v")
        def Get(self, interface_name, property_name):
            return self._property_call(self._conn.get_property, str(interface_name), str(property_name))

        @service.method(PROPERTIES_IFACE, in_signature="s", out_signature="a{sv}")
        def GetAll(self, interface_name):
            return self._property_call(self._conn.get_all_properties, str(interface_name))

        @service.method(PROPERTIES_IFACE, in_signature="ssv", out_signature="")
        def Set(self, interface_name, property_name, value):
            self._property_call(self._conn.set_property, str(interface_name), str(property_name), _unwrap(value))

    class _ProtocolObject(_Exported):
        @service.method(interface, in_signature="", out_signature="b", async_callbacks=async_cb)
        def IsReady(self, reply, error):
            self._call("IsReady", (), reply, error)

        @service.method(interface, in_signature="ssssay", out_signature="b",
                        byte_arrays=True, async_callbacks=async_cb)
        def AddDevice(self, dev_id, com_id, type_id, type_version, options, reply, error):
            self._call("AddDevice", (str(dev_id), str(com_id), str(type_id), str(type_version), bytes(options)),
                       reply, error)

        @service.method(interface, in_signature="s", out_signature="", async_callbacks=async_cb)
        def RemoveDevice(self, dev_id, reply, error):
            self._call("RemoveDevice", (str(dev_id),), reply, error)

    class _RootObject(_ProtocolObject):
        @service.method(interface, in_signature="s", out_signature="b", async_callbacks=async_cb)
        def AddBridge(self, bridge_id, reply, error):
            self._call("AddBridge", (str(bridge_id),), reply, error)

        @service.method(interface, in_signature="s", out_signature="", async_callbacks=async_cb)
        def RemoveBridge(self, bridge_id, reply, error):
            self._call("RemoveBridge", (str(bridge_id),), reply, error)

    class _DeviceObject(_Exported):
        @service.method(interface, in_signature="s", out_signature="b", async_callbacks=async_cb)
        def AddItem(self, item_id, reply, error):
            self._call("AddItem", (str(item_id),), reply, error)

        @service.method(interface, in_signature="s", out_signature="", async_callbacks=async_cb)
        def RemoveItem(self, item_id, reply, error):
            self._call("RemoveItem", (str(item_id),), reply, error)

    return {"protocol": _ProtocolObject, "root": _RootObject, "device": _DeviceObject}


def _unwrap(value):
    # dbus.String and friends subclass the Python builtins
    for base in (bool, int, float, str, bytes):
        if isinstance(value, base):
            return base(value)
    return value
