"""Content-addressed store on a remote zone.

Every imported resource is uploaded to `_<sha1>` at the root of the zone.
Identical bytes land on the same key, so importing the same content twice
overwrites the object with itself.
"""

import os
from collections.abc import Iterable
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO

from zonestore.contracts.errors import NotFoundError, StorageError
from zonestore.contracts.resources import Resource, StorageObject
from zonestore.core.config import ZoneSettings
from zonestore.core.hashing import digest_bytes, digest_file, digest_stream
from zonestore.core.logging import get_logger
from zonestore.core.paths import storage_key
from zonestore.core.scratch import DEFAULT_MEMORY_LIMIT, copy_stream, open_buffer
from zonestore.transport.pool import TransportPool

if TYPE_CHECKING:
    from zonestore.contracts.protocols import Collection


class ZoneStorage:
    """Storage keeping resource bytes on a zone under `_<sha1>`.

    Transfers lease a session from the pool, so one instance can serve
    several publishing workers at once.

    Example:
        storage = ZoneStorage("assets", settings, pool)
        resource = storage.import_from_bytes(b"hello", "persistent", filename="hello")
        storage.fetch_by_hash(resource.sha1)  # b"hello"
    """

    def __init__(
        self,
        name: str,
        settings: ZoneSettings,
        pool: TransportPool,
        *,
        scratch_memory_limit: int = DEFAULT_MEMORY_LIMIT,
    ) -> None:
        self._name = name
        self._settings = settings
        self._pool = pool
        self._scratch_memory_limit = scratch_memory_limit
        self._log = get_logger(__name__, storage=name, zone=settings.zone)

    @property
    def name(self) -> str:
        return self._name

    @property
    def zone(self) -> str:
        return self._settings.zone

    @property
    def settings(self) -> ZoneSettings:
        return self._settings

    def __repr__(self) -> str:
        return f"ZoneStorage(name={self._name!r}, zone={self.zone!r})"

    def _trace(self, event: str, **fields: Any) -> None:
        if self._settings.debug:
            self._log.info(event, **fields)

    def _put(self, content: bytes | BinaryIO, sha1: str) -> None:
        key = storage_key(sha1)
        self._trace("storage upload", key=key)
        with self._pool.lease() as transport:
            transport.upload(content, key)

    # === Import ===

    def import_from_bytes(
        self, content: bytes, collection_name: str, filename: str | None = None
    ) -> Resource:
        """Store content and return the resource describing it.

        Args:
            content: Raw bytes to store
            collection_name: Collection the resource belongs to
            filename: Published filename, defaults to the SHA-1

        Returns:
            Resource with sha1, md5 and size of content
        """
        digest = digest_bytes(content)
        self._put(content, digest.sha1)
        return Resource(
            sha1=digest.sha1,
            filename=filename or digest.sha1,
            file_size=digest.size,
            collection_name=collection_name,
            md5=digest.md5,
        )

    def import_from_local_file(
        self,
        path: str | os.PathLike[str],
        collection_name: str,
        filename: str | None = None,
    ) -> Resource:
        """Store the file at path, keeping its basename unless filename is given.

        Raises:
            StorageError: If the file does not exist or cannot be read
        """
        source = Path(path)
        if not source.is_file():
            raise StorageError(f"Cannot import {source}: not a file")

        try:
            digest = digest_file(source)
            with source.open("rb") as stream:
                self._put(stream, digest.sha1)
        except OSError as e:
            raise StorageError(f"Cannot import {source}: {e}") from e

        return Resource(
            sha1=digest.sha1,
            filename=filename or source.name,
            file_size=digest.size,
            collection_name=collection_name,
            md5=digest.md5,
        )

    def import_from_stream(
        self, stream: BinaryIO, collection_name: str, filename: str | None = None
    ) -> Resource:
        """Store everything readable from stream.

        The stream is spooled to a scratch buffer first so it can be hashed
        before the upload starts. The caller keeps ownership of stream.
        """
        buffer = open_buffer(self._scratch_memory_limit)
        try:
            copy_stream(stream, buffer)
            buffer.seek(0)
            digest = digest_stream(buffer)
            buffer.seek(0)
            self._put(buffer, digest.sha1)
        finally:
            buffer.close()

        return Resource(
            sha1=digest.sha1,
            filename=filename or digest.sha1,
            file_size=digest.size,
            collection_name=collection_name,
            md5=digest.md5,
        )

    # === Read ===

    def fetch_by_hash(self, sha1: str) -> bytes:
        """Return the stored bytes.

        Raises:
            NotFoundError: If nothing is stored under sha1
        """
        key = storage_key(sha1)
        self._trace("storage download", key=key)
        with self._pool.lease() as transport:
            return transport.download(key)

    def fetch_to(self, sha1: str, fileobj: BinaryIO) -> int:
        """Stream the stored bytes into fileobj. Returns bytes written."""
        key = storage_key(sha1)
        self._trace("storage download", key=key)
        with self._pool.lease() as transport:
            return transport.download_to(key, fileobj)

    def exists_by_hash(self, sha1: str) -> bool:
        key = storage_key(sha1)
        with self._pool.lease() as transport:
            return transport.exists(key)

    def get_stream_by_resource(self, resource: Resource) -> BinaryIO:
        """Return a readable copy of the resource's bytes, owned by the caller.

        Raises:
            NotFoundError: If the resource's object is missing from the zone
        """
        buffer = open_buffer(self._scratch_memory_limit)
        try:
            self.fetch_to(resource.sha1, buffer)
        except BaseException:
            buffer.close()
            raise
        buffer.seek(0)
        return buffer

    def get_stream_by_resource_path(self, relative_path: str) -> BinaryIO | None:
        """Return a readable copy of the object stored at `_<relative_path>`.

        relative_path is a storage-relative path such as a SHA-1, with or
        without a leading slash.

        Returns:
            A stream owned by the caller, or None if nothing is stored there

        Raises:
            ValueError: If relative_path contains a `..` segment
        """
        relative = relative_path.lstrip("/")
        if not relative or ".." in relative.split("/"):
            raise ValueError(f"invalid storage path: {relative_path!r}")
        key = "_" + relative
        self._trace("storage download", key=key)

        buffer = open_buffer(self._scratch_memory_limit)
        try:
            with self._pool.lease() as transport:
                transport.download_to(key, buffer)
        except NotFoundError:
            buffer.close()
            return None
        except BaseException:
            buffer.close()
            raise
        buffer.seek(0)
        return buffer

    # === Delete ===

    def delete_by_hash(self, sha1: str) -> bool:
        """Delete the stored object.

        Returns:
            True if it was deleted, False if it was already absent
        """
        key = storage_key(sha1)
        self._trace("storage delete", key=key)
        try:
            with self._pool.lease() as transport:
                transport.delete(key)
        except NotFoundError:
            self._trace("storage delete skipped, object absent", key=key)
            return False
        return True

    def delete_resource(self, resource: Resource) -> bool:
        return self.delete_by_hash(resource.sha1)

    # === Enumeration ===

    def get_objects_by_collection(self, collection: "Collection") -> list[StorageObject]:
        """Storage objects for every resource recorded in collection.

        Streams are opened lazily, one download per open().
        """
        return [
            StorageObject(resource, partial(self.get_stream_by_resource, resource))
            for resource in collection.resources()
        ]

    def get_objects(self, collections: Iterable["Collection"]) -> list[StorageObject]:
        """Storage objects across several collections backed by this storage."""
        objects: list[StorageObject] = []
        for collection in collections:
            objects.extend(self.get_objects_by_collection(collection))
        return objects
