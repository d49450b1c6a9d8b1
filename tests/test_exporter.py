"""Tests for the bus exporter and the in-memory bus acting as a remote caller."""

import pytest

from protoreg.bus import BusExporter, InMemoryBus, escape_path_element, SIGNAL_DEVICE_ADDED
from protoreg.core import BusMethodError
from protoreg.core.exceptions import ERR_INVALID_ARGS, ERR_UNKNOWN_METHOD, ERR_UNKNOWN_OBJECT
from protoreg.protocols import RootProtocol
from tests.conftest import DEVICE_IFACE, IFACE, PREFIX, PROTOCOL_NAME


class TestPaths:
    """Test deterministic object paths."""

    def test_root_and_bridge_paths(self, exporter):
        assert exporter.root_path() == "/org/protoreg/zigbee"
        assert exporter.bridge_path("b1") == "/org/protoreg/zigbee_b1"

    def test_device_path(self, exporter):
        assert exporter.device_path("/org/protoreg/zigbee", "d1") == "/org/protoreg/zigbee/d1"

    @pytest.mark.parametrize("raw, escaped", [
        ("abc123", "abc123"),
        ("abc_123", "abc_5f123"),
        ("a_b", "a_5fb"),
        ("dev-1", "dev_2d1"),
        ("a.b", "a_2eb"),
        ("00:11", "00_3a11"),
        ("", "_"),
    ])
    def test_escape_path_element(self, raw, escaped):
        assert escape_path_element(raw) == escaped

    @pytest.mark.parametrize("first, second", [
        ("a-b", "a_2db"),
        ("x:y", "x_3ay"),
        ("_", ""),
        ("a_b", "a_5fb"),
    ])
    def test_distinct_ids_never_share_an_element(self, first, second):
        assert escape_path_element(first) != escape_path_element(second)

    def test_bridge_path_keeps_ids_apart(self, exporter):
        assert exporter.bridge_path("a-b") != exporter.bridge_path("a_2db")
        assert exporter.bridge_path("x_y") == "/org/protoreg/zigbee_x_5fy"


class TestBusCalls:
    """Drive the registry through exported bus methods."""

    @pytest.mark.asyncio
    async def test_add_and_remove_device_over_bus(self, root, bus):
        added = await bus.call(root.path, IFACE, "AddDevice", "d1", "c1", "lamp", "1.0", [1, 2, 3])
        again = await bus.call(root.path, IFACE, "AddDevice", "d1", "c1", "lamp", "1.0", b"")

        assert (added, again) == (False, True)
        assert (await root.get_device("d1")).options == b"\x01\x02\x03"

        await bus.call(root.path, IFACE, "RemoveDevice", "d1")
        assert root.device_count() == 0

    @pytest.mark.asyncio
    async def test_is_ready_over_bus(self, root, bus):
        assert await bus.call(root.path, IFACE, "IsReady") is False
        await root.set_ready()
        assert await bus.call(root.path, IFACE, "IsReady") is True

    @pytest.mark.asyncio
    async def test_bridge_methods_over_bus(self, root, bus):
        assert await bus.call(root.path, IFACE, "AddBridge", "b1") is False
        bridge_path = f"{PREFIX}{PROTOCOL_NAME}_b1"

        assert await bus.call(bridge_path, IFACE, "AddDevice", "d1", "c", "t", "1", b"") is False
        await bus.call(root.path, IFACE, "RemoveBridge", "b1")

        assert not bus.is_exported(bridge_path)

    @pytest.mark.asyncio
    async def test_bridge_object_has_no_bridge_methods(self, root, bus):
        await root.add_bridge("b1")

        with pytest.raises(BusMethodError) as exc_info:
            await bus.call(f"{PREFIX}{PROTOCOL_NAME}_b1", IFACE, "AddBridge", "b2")

        assert exc_info.value.name == ERR_UNKNOWN_METHOD

    @pytest.mark.asyncio
    async def test_item_methods_on_device_object(self, root, bus):
        await root.add_device("d1", "c", "t", "1", b"")
        path = f"{root.path}/d1"

        assert await bus.call(path, DEVICE_IFACE, "AddItem", "i1") is False
        await bus.call(path, DEVICE_IFACE, "RemoveItem", "i1")

        assert (await root.get_device("d1")).item_count() == 0

    @pytest.mark.asyncio
    async def test_invalid_arguments(self, root, bus):
        with pytest.raises(BusMethodError) as exc_info:
            await bus.call(root.path, IFACE, "AddDevice", "", "c", "t", "1", b"")
        assert exc_info.value.name == ERR_INVALID_ARGS

        with pytest.raises(BusMethodError) as exc_info:
            await bus.call(root.path, IFACE, "AddDevice", "d1", "c", "t", "1", 3.5)
        assert exc_info.value.name == ERR_INVALID_ARGS
        assert root.device_count() == 0

    @pytest.mark.asyncio
    async def test_unknown_object(self, bus):
        with pytest.raises(BusMethodError) as exc_info:
            await bus.call("/nowhere", IFACE, "IsReady")
        assert exc_info.value.name == ERR_UNKNOWN_OBJECT


class TestDegradedExport:
    """The registry keeps working when the bus mirror cannot be created."""

    @pytest.mark.asyncio
    async def test_failed_device_export_keeps_registry_entry(self, root, bus):
        bus.fail_exports = True

        assert await root.add_device("d1", "c", "t", "1", b"") is False

        assert await root.device_ids() == ["d1"]
        assert not bus.is_exported(f"{root.path}/d1")
        assert len(bus.signals_named(SIGNAL_DEVICE_ADDED)) == 1

    @pytest.mark.asyncio
    async def test_unavailable_bus(self, notifier, log_level):
        bus = InMemoryBus(available=False)
        exporter = BusExporter(bus, PROTOCOL_NAME, PREFIX, IFACE, DEVICE_IFACE)
        root = RootProtocol(exporter, log_level, notifier)

        assert root.export() is False
        assert await root.add_bridge("b1") is False
        assert await root.add_device("d1", "c", "t", "1", b"") is False
        await root.remove_bridge("b1")
        await root.remove_device("d1")

        assert await root.bridge_ids() == []
        assert await root.device_ids() == []
        assert bus.objects == {}
