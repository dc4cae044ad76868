"""Builds storages, targets and collections from validated settings.

Usage:
    with Runtime(load_settings(Path("settings.yaml"))) as runtime:
        collection = runtime.collection("persistent")
        report = collection.publish()
"""

from zonestore.contracts.errors import ConfigurationError
from zonestore.contracts.protocols import ResourceRepository, WritableStorage
from zonestore.core.config import ZoneSettings, ZoneStoreSettings
from zonestore.core.logging import get_logger
from zonestore.core.manifest import ResourceManifest
from zonestore.publishing.target import ZoneTarget
from zonestore.storage.collection import ResourceCollection
from zonestore.storage.filesystem import FilesystemStorage
from zonestore.storage.zone import ZoneStorage
from zonestore.transport.manager import TransportManager
from zonestore.transport.pool import TransportPool

logger = get_logger(__name__)


class Runtime:
    """Owns the transport pools of one configuration.

    Every zone gets its own pool sized to concurrency.max_workers, so a
    publish pass holds at most that many sessions per zone. Pools are
    closed by close() or on leaving the context manager.
    """

    def __init__(
        self,
        settings: ZoneStoreSettings,
        *,
        manager: TransportManager | None = None,
        repository: ResourceRepository | None = None,
    ) -> None:
        self._settings = settings
        if manager is None:
            manager = TransportManager()
            manager.register_builtin_transports()
            manager.load_entrypoints()
        self._manager = manager
        if repository is None:
            repository = ResourceManifest(settings.manifest.path)
        self._repository = repository
        self._pools: list[TransportPool] = []

        publish = settings.publish
        self._storages: dict[str, WritableStorage] = {}
        for name, zone in settings.storages.items():
            self._storages[name] = ZoneStorage(
                name,
                zone,
                self._pool_for(zone),
                scratch_memory_limit=publish.scratch_memory_limit,
            )
        for name, fs in settings.filesystem_storages.items():
            self._storages[name] = FilesystemStorage(name, fs.path)

        self._targets = {
            name: ZoneTarget(
                name,
                zone,
                self._pool_for(zone),
                max_workers=settings.concurrency.max_workers,
                skip_existing=publish.skip_existing,
                scratch_memory_limit=publish.scratch_memory_limit,
            )
            for name, zone in settings.targets.items()
        }

        self._collections = {
            name: ResourceCollection(
                name,
                self._storages[binding.storage],
                self._targets[binding.target],
                self._repository,
            )
            for name, binding in settings.collections.items()
        }

    def _pool_for(self, zone: ZoneSettings) -> TransportPool:
        # Fail on unknown schemes now rather than on first transfer
        if self._manager.get_transport_by_scheme(zone.transport) is None:
            raise ConfigurationError(
                f"No transport registered for scheme '{zone.transport}'"
            )
        pool = TransportPool(
            lambda: self._manager.create(zone),
            size=self._settings.concurrency.max_workers,
        )
        self._pools.append(pool)
        return pool

    @property
    def settings(self) -> ZoneStoreSettings:
        return self._settings

    @property
    def repository(self) -> ResourceRepository:
        return self._repository

    @property
    def storages(self) -> dict[str, WritableStorage]:
        return dict(self._storages)

    @property
    def targets(self) -> dict[str, ZoneTarget]:
        return dict(self._targets)

    def collection(self, name: str) -> ResourceCollection:
        """Collection by name.

        Raises:
            ConfigurationError: If no collection has that name
        """
        try:
            return self._collections[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown collection '{name}'. Available: {sorted(self._collections)}"
            ) from None

    def close(self) -> None:
        """Close every transport session."""
        for pool in self._pools:
            pool.close()
        logger.debug("runtime closed", pools=len(self._pools))

    def __enter__(self) -> "Runtime":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
