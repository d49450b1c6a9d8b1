"""Protocol Registry - live device registry mirrored on D-Bus"""

__version__ = '1.0.0'
__description__ = 'Concurrent protocol/bridge/device registry exported as D-Bus objects'

# Core - most fundamental
from .core import (
    ProtoRegError,
    LogLevelState,
    ProtocolCallbacks,
    CallbackNotifier,
)

# Models - domain objects
from .models import Item, Device, Bridge

# Bus layer
from .bus import BusConnection, BusExporter, InMemoryBus, DBusConnection

# Registry scopes
from .protocols import Protocol, RootProtocol

# Services
from .services import RegistryService

__all__ = [
    # Core
    'ProtoRegError',
    'LogLevelState',
    'ProtocolCallbacks',
    'CallbackNotifier',

    # Models
    'Item',
    'Device',
    'Bridge',

    # Bus
    'BusConnection',
    'BusExporter',
    'InMemoryBus',
    'DBusConnection',

    # Registry
    'Protocol',
    'RootProtocol',
    'RegistryService',
]
