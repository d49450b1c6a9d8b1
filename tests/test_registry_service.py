"""Tests for registry bootstrap, shutdown and settings."""

import logging

import pytest

from config.app_config import settings
from protoreg.bus import InMemoryBus, SIGNAL_BRIDGE_REMOVED
from protoreg.core import ConfigurationError, LogLevelState
from protoreg.services import RegistryService
from tests.conftest import DEVICE_IFACE, IFACE, PREFIX, RecordingCallbacks


def make_service(bus, callbacks=None):
    return RegistryService(
        bus,
        protocol_name    = "zwave",
        path_prefix      = PREFIX,
        interface        = IFACE,
        device_interface = DEVICE_IFACE,
        log_level        = LogLevelState("INFO", logger=logging.getLogger("protoreg.tests.service")),
        callbacks        = callbacks,
    )


class TestRegistryService:
    """Test RegistryService start/stop."""

    @pytest.mark.asyncio
    async def test_start_exports_root(self):
        bus = InMemoryBus()
        service = make_service(bus)

        assert await service.start() is True
        assert bus.is_exported("/org/protoreg/zwave")
        assert service.notifier.running

        await service.stop()

    @pytest.mark.asyncio
    async def test_start_without_bus_reports_failure(self):
        service = make_service(InMemoryBus(available=False))

        assert await service.start() is False
        assert await service.root.add_device("d1", "c", "t", "1", b"") is False

        await service.stop()

    @pytest.mark.asyncio
    async def test_stop_tears_everything_down(self):
        bus = InMemoryBus()
        callbacks = RecordingCallbacks()
        service = make_service(bus, callbacks)
        await service.start()
        await service.root.add_bridge("b1")
        bridge = await service.root.get_bridge("b1")
        await bridge.protocol.add_device("bd", "c", "t", "1", b"")
        await service.root.add_device("rd", "c", "t", "1", b"")

        await service.stop()

        assert bus.objects == {}
        assert len(bus.signals_named(SIGNAL_BRIDGE_REMOVED)) == 1
        assert sorted(e[1] for e in callbacks.named("remove_device")) == ["bd", "rd"]
        assert not service.notifier.running


class TestSettings:
    """Test settings validation and from_settings wiring."""

    @pytest.mark.asyncio
    async def test_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "PROTOCOL_NAME", "knx")
        monkeypatch.setattr(settings, "DBUS_PATH_PREFIX", "/com/example/")
        monkeypatch.setattr(settings, "LOG_LEVEL", "INFO")
        bus = InMemoryBus()

        service = RegistryService.from_settings(
            bus, log_level=LogLevelState("INFO", logger=logging.getLogger("protoreg.tests.service")),
        )

        assert service.root.path == "/com/example/knx"
        assert service.exporter.interface == settings.DBUS_INTERFACE

    @pytest.mark.parametrize("attr, value", [
        ("DBUS_BUS", "starship"),
        ("DBUS_PATH_PREFIX", "org/protoreg"),
        ("PROTOCOL_NAME", ""),
        ("NOTIFY_QUEUE_SIZE", 0),
        ("LOG_LEVEL", "LOUD"),
    ])
    def test_invalid_settings(self, monkeypatch, attr, value):
        monkeypatch.setattr(settings, attr, value)

        with pytest.raises(ConfigurationError):
            settings.validate()
