#!/usr/bin/env python3
import asyncio, sys
from config.logging_config import configure
from config.app_config import settings
from protoreg.bus import DBusConnection
from protoreg.services import RegistryService

async def async_main():
    configure()
    connection = DBusConnection(
        asyncio.get_running_loop(),
        bus=settings.DBUS_BUS,
        service_name=settings.DBUS_SERVICE_NAME,
    )
    if not connection.connect():
        sys.exit("unable to connect to D-Bus")
    service = RegistryService.from_settings(connection)
    try:
        if not await service.start():
            sys.exit("unable to export the root protocol object")
        await service.root.set_ready()
        # keep process alive
        while True:
            await asyncio.sleep(3600)
    finally:
        await service.stop()
        connection.close()

if __name__ == "__main__":
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        sys.exit("🌙  graceful shutdown")
