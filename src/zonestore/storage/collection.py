"""Named grouping of resources bound to one storage and one target."""

import os
from typing import TYPE_CHECKING, BinaryIO

from zonestore.contracts.errors import ConfigurationError
from zonestore.contracts.protocols import ResourceRepository, WritableStorage
from zonestore.contracts.resources import Resource, StorageObject
from zonestore.core.logging import get_logger

if TYPE_CHECKING:
    from zonestore.contracts.results import PublishReport
    from zonestore.publishing.target import ZoneTarget

logger = get_logger(__name__)


class ResourceCollection:
    """A collection of resources stored in one storage and published to one target.

    Membership comes from the resource repository: a resource belongs to
    the collection when the repository records it under the collection's
    name.
    """

    def __init__(
        self,
        name: str,
        storage: WritableStorage,
        target: "ZoneTarget | None",
        repository: ResourceRepository,
    ) -> None:
        self._name = name
        self._storage = storage
        self._target = target
        self._repository = repository

    @property
    def name(self) -> str:
        return self._name

    @property
    def storage(self) -> WritableStorage:
        return self._storage

    @property
    def target(self) -> "ZoneTarget | None":
        return self._target

    def __repr__(self) -> str:
        return (
            f"ResourceCollection(name={self._name!r}, storage={self._storage.name!r}, "
            f"target={self._target.name if self._target else None!r})"
        )

    def resources(self) -> list[Resource]:
        return self._repository.find_by_collection_name(self._name)

    def get_resource(self, sha1: str) -> Resource | None:
        return self._repository.find_by_sha1(sha1, self._name)

    def get_objects(self) -> list[StorageObject]:
        """Storage objects for the current membership."""
        return self._storage.get_objects_by_collection(self)

    def get_stream_by_resource(self, resource: Resource) -> BinaryIO:
        return self._storage.get_stream_by_resource(resource)

    # === Membership changes ===

    def import_bytes(
        self,
        content: bytes,
        filename: str | None = None,
        relative_publication_path: str = "",
    ) -> Resource:
        """Store content and record it as a member."""
        resource = self._storage.import_from_bytes(content, self._name, filename)
        return self._register(resource, relative_publication_path)

    def import_file(
        self,
        path: str | os.PathLike[str],
        filename: str | None = None,
        relative_publication_path: str = "",
    ) -> Resource:
        """Store a local file and record it as a member."""
        resource = self._storage.import_from_local_file(path, self._name, filename)
        return self._register(resource, relative_publication_path)

    def _register(self, resource: Resource, relative_publication_path: str) -> Resource:
        if relative_publication_path:
            resource = resource.with_publication_path(relative_publication_path)
        self._repository.add(resource)
        logger.debug(
            "resource imported",
            collection=self._name,
            sha1=resource.sha1,
            filename=resource.filename,
        )
        return resource

    def remove(self, resource: Resource, *, delete_data: bool = True) -> bool:
        """Drop a resource from the collection.

        The stored object is deleted only when no recorded resource in any
        collection still points at its SHA-1. Published copies stay until
        the next publish pass prunes them.

        Returns:
            False if the resource was not a member
        """
        if not self._repository.remove(resource):
            return False
        if delete_data and self._repository.count_references(resource.sha1) == 0:
            self._storage.delete_by_hash(resource.sha1)
        return True

    def publish(self) -> "PublishReport":
        """Mirror the collection to its target."""
        if self._target is None:
            raise ConfigurationError(f"Collection '{self._name}' has no publishing target")
        return self._target.publish_collection(self)
