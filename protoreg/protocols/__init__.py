"""Registry scopes: the root protocol and its bridges."""

from .protocol import Protocol
from .root_protocol import RootProtocol

__all__ = [
    'Protocol',
    'RootProtocol',
]
