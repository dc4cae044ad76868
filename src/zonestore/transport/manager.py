"""Transport manager for backend registration and lookup.

Uses pluggy for hook-based registration. Third-party backends can be
installed as packages exposing a "zonestore" entry point.
"""

from typing import Any

import pluggy

from zonestore.contracts.errors import ConfigurationError
from zonestore.contracts.protocols import Transport
from zonestore.core.config import ZoneSettings
from zonestore.transport.hookspecs import PROJECT_NAME, ZoneStoreTransportSpec


class TransportManager:
    """Maps transport schemes to backend classes.

    Usage:
        manager = TransportManager()
        manager.register_builtin_transports()

        transport = manager.create(zone_settings)
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ZoneStoreTransportSpec)
        self._transports: dict[str, type[Transport]] = {}

    def register_builtin_transports(self) -> None:
        """Register the FTP and local directory transports."""
        from zonestore.transport.hookimpl import builtin_transports

        self.register(builtin_transports)

    def load_entrypoints(self) -> int:
        """Register backends installed under the "zonestore" entry point group.

        Returns:
            Number of plugins loaded
        """
        count = self._pm.load_setuptools_entrypoints(PROJECT_NAME)
        self._refresh_caches()
        return count

    def register(self, plugin: Any) -> None:
        """Register a plugin.

        Args:
            plugin: Plugin instance implementing hook methods
        """
        self._pm.register(plugin)
        self._refresh_caches()

    def _refresh_caches(self) -> None:
        """Refresh the scheme cache from hooks.

        Raises:
            ValueError: If two transports claim the same scheme
        """
        new_transports: dict[str, type[Transport]] = {}

        for transports in self._pm.hook.zonestore_get_transports():
            for cls in transports:
                scheme = cls.scheme
                if scheme in new_transports and new_transports[scheme] is not cls:
                    raise ValueError(
                        f"Duplicate transport scheme: '{scheme}'. "
                        f"Already registered by {new_transports[scheme].__name__}"
                    )
                new_transports[scheme] = cls

        self._transports = new_transports

    def get_transports(self) -> list[type[Transport]]:
        """Get all registered transport classes."""
        return list(self._transports.values())

    def get_transport_by_scheme(self, scheme: str) -> type[Transport] | None:
        """Get transport class by scheme."""
        return self._transports.get(scheme)

    def create(self, settings: ZoneSettings) -> Transport:
        """Instantiate the transport selected by settings.transport.

        Raises:
            ConfigurationError: If no backend provides the scheme
        """
        cls = self.get_transport_by_scheme(settings.transport)
        if cls is None:
            raise ConfigurationError(
                f"No transport registered for scheme '{settings.transport}'. "
                f"Available: {sorted(self._transports)}"
            )
        return cls(settings)  # type: ignore[call-arg]
