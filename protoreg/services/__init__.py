"""Service wiring."""

from .registry_service import RegistryService

__all__ = [
    'RegistryService',
]
