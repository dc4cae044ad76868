"""Filesystem-based content-addressed storage.

Stores resource bytes in a local directory using the first 2 characters of
the SHA-1 as subdirectory for better file distribution.

Structure: base_path/ab/abcdef123...

A publish pass cannot copy zone-to-zone from here, so targets stream
objects from this storage directly.
"""

import io
import os
import shutil
import tempfile
from collections.abc import Iterable
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from zonestore.contracts.errors import NotFoundError, StorageError
from zonestore.contracts.resources import Resource, StorageObject
from zonestore.core.hashing import digest_bytes, digest_file, is_sha1
from zonestore.core.logging import get_logger

if TYPE_CHECKING:
    from zonestore.contracts.protocols import Collection

logger = get_logger(__name__)


class FilesystemStorage:
    """Storage keeping resource bytes in a local directory tree."""

    def __init__(self, name: str, base_path: Path) -> None:
        """Initialize filesystem storage.

        Args:
            name: Storage name
            base_path: Root directory for stored objects
        """
        self._name = name
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)

    @property
    def name(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"FilesystemStorage(name={self._name!r}, base_path={str(self.base_path)!r})"

    def _path_for_hash(self, sha1: str) -> Path:
        """Get filesystem path for a SHA-1."""
        if not is_sha1(sha1):
            raise ValueError(f"not a SHA-1 hex digest: {sha1!r}")
        return self.base_path / sha1[:2] / sha1

    @staticmethod
    def _write_atomic(target: Path, stream: BinaryIO) -> None:
        """Copy stream to target through a temp file in the same directory."""
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".import-")
        try:
            with os.fdopen(fd, "wb") as f:
                shutil.copyfileobj(stream, f)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def import_from_bytes(
        self, content: bytes, collection_name: str, filename: str | None = None
    ) -> Resource:
        """Store content and return the resource describing it."""
        digest = digest_bytes(content)
        path = self._path_for_hash(digest.sha1)

        # Idempotent: skip if already exists
        if not path.exists():
            try:
                self._write_atomic(path, io.BytesIO(content))
            except OSError as e:
                raise StorageError(f"Cannot store {digest.sha1}: {e}") from e

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
        """Copy the file at path into the store."""
        source = Path(path)
        if not source.is_file():
            raise StorageError(f"Cannot import {source}: not a file")

        try:
            digest = digest_file(source)
            target = self._path_for_hash(digest.sha1)
            if not target.exists():
                with source.open("rb") as stream:
                    self._write_atomic(target, stream)
        except OSError as e:
            raise StorageError(f"Cannot import {source}: {e}") from e

        return Resource(
            sha1=digest.sha1,
            filename=filename or source.name,
            file_size=digest.size,
            collection_name=collection_name,
            md5=digest.md5,
        )

    def fetch_by_hash(self, sha1: str) -> bytes:
        """Retrieve content by SHA-1.

        Raises:
            NotFoundError: If content not found
        """
        path = self._path_for_hash(sha1)
        if not path.exists():
            raise NotFoundError(f"Object not found: {sha1}", remote_path=str(path))
        return path.read_bytes()

    def exists_by_hash(self, sha1: str) -> bool:
        return self._path_for_hash(sha1).exists()

    def delete_by_hash(self, sha1: str) -> bool:
        """Delete content by SHA-1.

        Returns:
            True if content was deleted, False if not found
        """
        path = self._path_for_hash(sha1)
        if not path.exists():
            return False
        path.unlink()
        logger.debug("object deleted", storage=self._name, sha1=sha1)
        return True

    def delete_resource(self, resource: Resource) -> bool:
        return self.delete_by_hash(resource.sha1)

    def get_stream_by_resource(self, resource: Resource) -> BinaryIO:
        """Open the stored bytes for reading. The caller closes the stream."""
        path = self._path_for_hash(resource.sha1)
        try:
            return path.open("rb")
        except FileNotFoundError as e:
            raise NotFoundError(
                f"Object not found: {resource.sha1}", remote_path=str(path)
            ) from e

    def get_objects_by_collection(self, collection: "Collection") -> list[StorageObject]:
        return [
            StorageObject(resource, partial(self.get_stream_by_resource, resource))
            for resource in collection.resources()
        ]

    def get_objects(self, collections: Iterable["Collection"]) -> list[StorageObject]:
        objects: list[StorageObject] = []
        for collection in collections:
            objects.extend(self.get_objects_by_collection(collection))
        return objects
