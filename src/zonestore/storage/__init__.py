"""Storages and collections."""

from zonestore.storage.collection import ResourceCollection
from zonestore.storage.filesystem import FilesystemStorage
from zonestore.storage.zone import ZoneStorage

__all__ = ["FilesystemStorage", "ResourceCollection", "ZoneStorage"]
