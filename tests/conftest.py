"""Shared pytest configuration and fixtures for the registry test suite."""

import logging
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from protoreg.bus import BusExporter, InMemoryBus
from protoreg.core import CallbackNotifier, LogLevelState, ProtocolCallbacks
from protoreg.protocols import Protocol, RootProtocol


PREFIX = "/org/protoreg/"
IFACE = "org.protoreg.Protocol1"
DEVICE_IFACE = "org.protoreg.Device1"
PROTOCOL_NAME = "zigbee"


class RecordingCallbacks(ProtocolCallbacks):
    """Collects every callback invocation in order."""

    def __init__(self):
        self.events = []

    async def add_device(self, device):
        self.events.append(("add_device", device.device_id))

    async def remove_device(self, device_id):
        self.events.append(("remove_device", device_id))

    async def add_item(self, item):
        self.events.append(("add_item", item.device_id, item.item_id))

    async def remove_item(self, device_id, item_id):
        self.events.append(("remove_item", device_id, item_id))

    def named(self, name):
        return [e for e in self.events if e[0] == name]


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def bus() -> InMemoryBus:
    return InMemoryBus()


@pytest.fixture
def exporter(bus) -> BusExporter:
    return BusExporter(bus, PROTOCOL_NAME, PREFIX, IFACE, DEVICE_IFACE)


@pytest.fixture
def callbacks() -> RecordingCallbacks:
    return RecordingCallbacks()


@pytest.fixture
def log_level() -> LogLevelState:
    """Verbosity owner bound to a throwaway logger so the root logger is untouched."""
    return LogLevelState("INFO", logger=logging.getLogger("protoreg.tests.verbosity"))


@pytest_asyncio.fixture
async def notifier(callbacks):
    notifier = CallbackNotifier(callbacks)
    await notifier.start()
    yield notifier
    if notifier.running:
        await notifier.stop()


@pytest.fixture
def protocol(exporter, notifier) -> Protocol:
    proto = Protocol(exporter.root_path(), exporter, notifier)
    exporter.export_protocol(proto)
    return proto


@pytest.fixture
def root(exporter, notifier, log_level) -> RootProtocol:
    root = RootProtocol(exporter, log_level, notifier)
    root.export()
    return root
