"""Data models and domain objects."""

from .entities import Item, Device, Bridge

__all__ = [
    'Item',
    'Device',
    'Bridge',
]
