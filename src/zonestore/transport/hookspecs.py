"""pluggy hook specifications for transport backends.

A backend registers itself by returning its transport classes from
zonestore_get_transports. Each class declares the `scheme` that selects it
in ZoneSettings.transport.

Usage (implementing a backend):
    from zonestore.transport.hookspecs import hookimpl

    class SftpBackend:
        @hookimpl
        def zonestore_get_transports(self):
            return [SftpTransport]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from zonestore.contracts.protocols import Transport

PROJECT_NAME = "zonestore"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class ZoneStoreTransportSpec:
    """Hook specifications for transport backends."""

    @hookspec
    def zonestore_get_transports(self) -> list[type["Transport"]]:  # type: ignore[empty-body]
        """Return transport classes.

        Returns:
            List of Transport classes (not instances)
        """
