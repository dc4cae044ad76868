"""Protocols for the collaborators the storage and publication layers use.

These are used for type checking and isinstance checks at the seams. The
transport protocol is the narrow capability interface every backend
(FTP, local directory) implements.
"""

import os
from collections.abc import Iterable
from typing import TYPE_CHECKING, BinaryIO, Protocol, runtime_checkable

if TYPE_CHECKING:
    from zonestore.contracts.resources import Resource, StorageObject


@runtime_checkable
class Transport(Protocol):
    """Stateful remote filesystem session scoped to one zone.

    All paths are zone-relative. Lifecycle:
    1. connect() - establish the session (no-op if already connected)
    2. any number of operations
    3. close() - release the session (no-op if not connected)
    """

    scheme: str

    @property
    def zone(self) -> str:
        """Root namespace all paths resolve under."""
        ...

    def connect(self) -> None:
        """Establish the session. Idempotent."""
        ...

    def close(self) -> None:
        """Release the session. Idempotent."""
        ...

    def ensure_directory(self, path: str, recursive: bool = True) -> None:
        """Create a directory; an existing directory is not an error."""
        ...

    def upload(self, content: bytes | BinaryIO, remote_path: str) -> None:
        """Create or overwrite a remote object."""
        ...

    def download(self, remote_path: str) -> bytes:
        """Read a remote object.

        Raises:
            NotFoundError: If the object does not exist
        """
        ...

    def download_to(self, remote_path: str, fileobj: BinaryIO) -> int:
        """Stream a remote object into fileobj and return the byte count.

        Raises:
            NotFoundError: If the object does not exist
        """
        ...

    def delete(self, remote_path: str) -> None:
        """Remove a remote object and its emptied nested parent directory.

        Raises:
            NotFoundError: If the object does not exist
        """
        ...

    def exists(self, remote_path: str) -> bool:
        """Whether a remote object exists."""
        ...


@runtime_checkable
class Storage(Protocol):
    """Source of resource bytes for a collection."""

    @property
    def name(self) -> str: ...

    def get_objects_by_collection(
        self, collection: "Collection"
    ) -> list["StorageObject"]:
        """Enumerate the stored objects belonging to a collection."""
        ...

    def get_stream_by_resource(self, resource: "Resource") -> BinaryIO:
        """Open a stream over a resource's bytes.

        Raises:
            NotFoundError: If the storage holds no data for the resource
        """
        ...


@runtime_checkable
class Collection(Protocol):
    """Named grouping of resources sharing a storage and a target."""

    @property
    def name(self) -> str: ...

    @property
    def storage(self) -> Storage: ...

    def get_objects(self) -> list["StorageObject"]: ...

    def get_stream_by_resource(self, resource: "Resource") -> BinaryIO: ...

    def resources(self) -> list["Resource"]:
        """Current membership, as recorded by the hosting application."""
        ...


@runtime_checkable
class ResourceRepository(Protocol):
    """Where the hosting application records which resources exist."""

    def add(self, resource: "Resource") -> None: ...

    def remove(self, resource: "Resource") -> bool: ...

    def find_by_collection_name(self, collection_name: str) -> list["Resource"]: ...

    def find_by_sha1(
        self, sha1: str, collection_name: str
    ) -> "Resource | None": ...

    def collection_names(self) -> Iterable[str]: ...

    def count_references(self, sha1: str) -> int:
        """How many recorded resources, in any collection, point at sha1."""
        ...


@runtime_checkable
class WritableStorage(Storage, Protocol):
    """Storage that resources can be imported into and deleted from."""

    def import_from_bytes(
        self, content: bytes, collection_name: str, filename: str | None = None
    ) -> "Resource": ...

    def import_from_local_file(
        self, path: "str | os.PathLike[str]", collection_name: str, filename: str | None = None
    ) -> "Resource": ...

    def delete_by_hash(self, sha1: str) -> bool: ...
