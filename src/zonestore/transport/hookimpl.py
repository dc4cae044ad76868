"""Hook implementation for built-in transports."""

from typing import Any

from zonestore.transport.hookspecs import hookimpl


class ZoneStoreBuiltinTransports:
    """Hook implementer for built-in transports."""

    @hookimpl
    def zonestore_get_transports(self) -> list[type[Any]]:
        """Return built-in transport classes."""
        from zonestore.transport.ftp import FtpTransport
        from zonestore.transport.local import LocalTransport

        return [FtpTransport, LocalTransport]


# Singleton instance for registration
builtin_transports = ZoneStoreBuiltinTransports()
