"""Centralised application settings (dotenv + env overrides)."""
from __future__ import annotations
import os
from pathlib import Path
from dotenv import load_dotenv

ROOT = Path(__file__).parents[1]
load_dotenv(ROOT / ".env", override=False)

class settings:                            # pylint: disable=too-few-public-methods
    PROTOCOL_NAME         = os.getenv("PROTOCOL_NAME", "zigbee")
    DBUS_PATH_PREFIX      = os.getenv("DBUS_PATH_PREFIX", "/org/protoreg/")
    DBUS_INTERFACE        = os.getenv("DBUS_INTERFACE", "org.protoreg.Protocol1")
    DBUS_DEVICE_INTERFACE = os.getenv("DBUS_DEVICE_INTERFACE", "org.protoreg.Device1")
    DBUS_SERVICE_NAME     = os.getenv("DBUS_SERVICE_NAME", "org.protoreg")
    DBUS_BUS              = os.getenv("DBUS_BUS", "session").lower()
    LOG_LEVEL             = os.getenv("LOG_LEVEL", "INFO").upper()
    NOTIFY_QUEUE_SIZE     = int(os.getenv("NOTIFY_QUEUE_SIZE", 1000))

    @classmethod
    def validate(cls) -> None:
        # imported lazily so that config stays importable on its own
        from protoreg.core.exceptions import ConfigurationError
        from protoreg.core.log_level import parse_level

        if cls.DBUS_BUS not in ("session", "system"):
            raise ConfigurationError(f"DBUS_BUS must be 'session' or 'system', got {cls.DBUS_BUS!r}")
        if not cls.DBUS_PATH_PREFIX.startswith("/") or not cls.DBUS_PATH_PREFIX.endswith("/"):
            raise ConfigurationError(f"DBUS_PATH_PREFIX must start and end with '/', got {cls.DBUS_PATH_PREFIX!r}")
        if not cls.PROTOCOL_NAME:
            raise ConfigurationError("PROTOCOL_NAME must not be empty")
        if cls.NOTIFY_QUEUE_SIZE <= 0:
            raise ConfigurationError("NOTIFY_QUEUE_SIZE must be positive")
        try:
            parse_level(cls.LOG_LEVEL)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
