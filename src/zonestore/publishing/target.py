"""Publication target: mirrors collections into a web-served zone.

A publish pass uploads every member of a collection to its public path and
then prunes the paths this target published before that have since left
the collection. The set of paths a target believes it has published lives
in memory on the instance; a fresh instance starts empty and prunes
nothing on its first pass.

Cross-zone copies are downloaded into a scratch buffer and re-uploaded.
Any other storage is streamed from directly.
"""

import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, BinaryIO

from zonestore.contracts.errors import (
    ConfigurationError,
    NotFoundError,
    PublishError,
    TransportError,
    ZoneStoreError,
)
from zonestore.contracts.protocols import Collection
from zonestore.contracts.resources import Resource, StorageObject
from zonestore.contracts.results import PublishReport, TransferOutcome
from zonestore.core.config import ZoneSettings
from zonestore.core.logging import get_logger
from zonestore.core.paths import public_path, public_url
from zonestore.core.scratch import DEFAULT_MEMORY_LIMIT, scratch_buffer
from zonestore.publishing.executor import TransferExecutor
from zonestore.storage.zone import ZoneStorage
from zonestore.transport.pool import TransportPool


def _namespace(settings: ZoneSettings) -> tuple[object, ...]:
    """Identity of the directory a zone's settings address."""
    if settings.transport == "local" and settings.local_root is not None:
        # Host and port are not used by the local transport
        return ("local", (Path(settings.local_root) / settings.zone).resolve())
    return (settings.transport, settings.host.lower(), settings.port, settings.zone)


def same_zone(a: ZoneSettings, b: ZoneSettings) -> bool:
    """True when both settings address the same remote namespace."""
    return _namespace(a) == _namespace(b)


class ZoneTarget:
    """Publishes collections to a zone and serves their public URLs.

    Example:
        target = ZoneTarget("cdn", settings, pool, max_workers=4)
        report = target.publish_collection(collection)
        target.get_public_persistent_resource_uri(resource)
        # 'http://site-1a2b.kxcdn.com/aaf4c61d.../hello'
    """

    def __init__(
        self,
        name: str,
        settings: ZoneSettings,
        pool: TransportPool,
        *,
        max_workers: int = 4,
        skip_existing: bool = False,
        scratch_memory_limit: int = DEFAULT_MEMORY_LIMIT,
    ) -> None:
        self._name = name
        self._settings = settings
        self._pool = pool
        self._executor: TransferExecutor[StorageObject, TransferOutcome] = (
            TransferExecutor(max_workers)
        )
        self._skip_existing = skip_existing
        self._scratch_memory_limit = scratch_memory_limit
        # Public paths this instance has published and not yet pruned
        self._known_published: set[str] = set()
        # One publish pass at a time per instance
        self._pass_lock = threading.Lock()
        self._log = get_logger(__name__, target=name, zone=settings.zone)

    @property
    def name(self) -> str:
        return self._name

    @property
    def zone(self) -> str:
        return self._settings.zone

    @property
    def settings(self) -> ZoneSettings:
        return self._settings

    @property
    def known_published(self) -> frozenset[str]:
        return frozenset(self._known_published)

    def forget(self) -> None:
        """Reset the known-published set; the next pass prunes nothing."""
        with self._pass_lock:
            self._known_published.clear()

    def __repr__(self) -> str:
        return f"ZoneTarget(name={self._name!r}, zone={self.zone!r})"

    def _trace(self, event: str, **fields: Any) -> None:
        if self._settings.debug:
            self._log.info(event, **fields)

    # === Public URLs ===

    def get_public_persistent_resource_uri(self, resource: Resource) -> str:
        """URL under which the resource is (or will be) published."""
        return public_url(
            self._settings.zone_domain, public_path(resource), self._settings.url_scheme
        )

    def get_public_static_resource_uri(self, relative_path: str) -> str:
        """URL of a static path under this target."""
        return public_url(
            self._settings.zone_domain, relative_path, self._settings.url_scheme
        )

    # === Publishing ===

    def _check_source(self, collection: Collection) -> ZoneStorage | None:
        """Return the source zone storage for cross-zone copies, if any.

        Raises:
            ConfigurationError: If the collection is stored in this target's zone
        """
        storage = collection.storage
        if not isinstance(storage, ZoneStorage):
            return None
        if same_zone(storage.settings, self._settings):
            raise ConfigurationError(
                f"Could not publish collection '{collection.name}' because the "
                f"source storage '{storage.name}' and target '{self._name}' share "
                f"zone '{self.zone}'; publishing would overwrite stored resources"
            )
        return storage

    def publish_collection(self, collection: Collection) -> PublishReport:
        """Upload every member of collection and prune what left it.

        Uploads run in parallel, pruning starts only after every upload has
        finished. A failed upload is recorded in the report and does not
        stop the pass.

        Args:
            collection: Collection to mirror

        Returns:
            PublishReport with per-path outcomes and pruned paths

        Raises:
            ConfigurationError: If the collection's storage shares this zone
        """
        with self._pass_lock:
            source = self._check_source(collection)
            start = time.perf_counter()

            # First object wins when several members share a public path
            by_path: dict[str, StorageObject] = {}
            for obj in collection.get_objects():
                by_path.setdefault(public_path(obj), obj)

            obsolete = self._known_published - set(by_path)

            self._log.info(
                "publish started",
                collection=collection.name,
                objects=len(by_path),
                obsolete=len(obsolete),
            )

            outcomes = self._executor.execute(
                list(by_path.values()),
                lambda obj: self._transfer(obj, source),
            )

            pruned, prune_failures = self._prune(obsolete)
            self._known_published = set(by_path) | set(prune_failures)

            report = PublishReport(
                collection=collection.name,
                target=self._name,
                outcomes=outcomes,
                pruned=pruned,
                prune_failures=prune_failures,
                duration_seconds=time.perf_counter() - start,
            )

        if report.ok:
            self._log.info("publish finished", **report.summary())
        else:
            self._log.warning("publish finished with failures", **report.summary())
        return report

    def publish_resource(self, resource: Resource, collection: Collection) -> str:
        """Publish a single resource of collection, without pruning.

        Returns:
            The public path the resource was uploaded to

        Raises:
            ConfigurationError: If the collection's storage shares this zone
            PublishError: If the resource's bytes cannot be read from the source
        """
        source = self._check_source(collection)
        path = public_path(resource)
        try:
            if source is not None:
                self._copy_from_zone(source, resource.sha1, path)
            else:
                self._stream_upload(
                    lambda: collection.get_stream_by_resource(resource), path
                )
        except NotFoundError as e:
            raise PublishError(
                f"Could not publish {resource.sha1}: source object is missing"
            ) from e

        with self._pass_lock:
            self._known_published.add(path)
        return path

    def unpublish_resource(self, resource: Resource) -> bool:
        """Delete the resource's published copy.

        Returns:
            False if nothing was published at its public path
        """
        path = public_path(resource)
        self._trace("unpublish", public_path=path)
        try:
            with self._pool.lease() as transport:
                transport.delete(path)
            deleted = True
        except NotFoundError:
            self._trace("unpublish skipped, path not published", public_path=path)
            deleted = False

        with self._pass_lock:
            self._known_published.discard(path)
        return deleted

    # === Transfers ===

    def _transfer(self, obj: StorageObject, source: ZoneStorage | None) -> TransferOutcome:
        path = public_path(obj)
        try:
            if self._skip_existing and self._exists(path):
                self._trace("upload skipped, path exists", public_path=path)
                return TransferOutcome.skipped(path, obj.sha1)

            if source is not None:
                size = self._copy_from_zone(source, obj.sha1, path)
            else:
                size = self._stream_upload(obj.open, path)
        except ZoneStoreError as e:
            self._log.warning(
                "upload failed", public_path=path, sha1=obj.sha1, error=str(e)
            )
            return TransferOutcome.failed(path, obj.sha1, str(e))

        return TransferOutcome.uploaded(path, obj.sha1, size)

    def _exists(self, path: str) -> bool:
        with self._pool.lease() as transport:
            return transport.exists(path)

    def _upload(self, stream: BinaryIO, path: str) -> None:
        self._trace("upload", public_path=path)
        with self._pool.lease() as transport:
            transport.upload(stream, path)

    def _copy_from_zone(self, source: ZoneStorage, sha1: str, path: str) -> int:
        with scratch_buffer(self._scratch_memory_limit) as buffer:
            size = source.fetch_to(sha1, buffer)
            buffer.seek(0)
            self._upload(buffer, path)
        return size

    def _stream_upload(self, opener: Callable[[], BinaryIO], path: str) -> int:
        stream = opener()
        try:
            self._upload(stream, path)
            return stream.tell()
        finally:
            stream.close()

    # === Pruning ===

    def _prune(self, paths: set[str]) -> tuple[list[str], dict[str, str]]:
        """Delete paths best effort.

        Returns:
            (pruned paths, {path: error} for paths that could not be deleted)
        """
        pruned: list[str] = []
        failures: dict[str, str] = {}
        for path in sorted(paths):
            try:
                self._delete(path)
            except NotFoundError:
                self._trace("prune skipped, path already gone", public_path=path)
            except TransportError as e:
                self._log.warning("prune failed", public_path=path, error=str(e))
                failures[path] = str(e)
                continue
            pruned.append(path)
        return pruned, failures

    def _delete(self, path: str) -> None:
        self._trace("prune", public_path=path)
        with self._pool.lease() as transport:
            transport.delete(path)

