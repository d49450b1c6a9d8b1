"""
Process-wide log verbosity.

A single ``LogLevelState`` owns the verbosity knob; the root protocol reads and
writes it through this object instead of poking ``logging`` directly.
"""

import logging
import threading
from typing import Optional

from .exceptions import InvalidLogLevelError


_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "NOTICE": logging.INFO,       # no stdlib equivalent
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def parse_level(name: str) -> int:
    """Map a verbosity name (case-insensitive) to a ``logging`` level."""
    if not isinstance(name, str):
        raise InvalidLogLevelError(f"log level must be a string, got {type(name).__name__}")
    try:
        return _LEVELS[name.strip().upper()]
    except KeyError:
        raise InvalidLogLevelError(f"invalid log level: {name!r}") from None


class LogLevelState:
    """Single owner of the verbosity applied to ``logger`` (root logger by default)."""

    def __init__(self, initial: str = "INFO", logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger()
        self._lock = threading.Lock()
        self._name = ""
        self.set_level(initial)

    @property
    def level_name(self) -> str:
        with self._lock:
            return self._name

    @property
    def level(self) -> int:
        return _LEVELS[self.level_name]

    def set_level(self, name: str) -> str:
        """Parse and apply ``name``; returns the canonical name.

        Raises InvalidLogLevelError and leaves the current level untouched when
        ``name`` is not a known level.
        """
        level = parse_level(name)
        canonical = name.strip().upper()
        with self._lock:
            self._logger.setLevel(level)
            self._name = canonical
        return canonical
