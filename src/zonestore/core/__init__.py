"""Core infrastructure: configuration, logging, hashing, path policy."""

from zonestore.core.config import (
    CollectionSettings,
    ConcurrencySettings,
    FilesystemStorageSettings,
    PublishSettings,
    ZoneSettings,
    ZoneStoreSettings,
    load_settings,
)
from zonestore.core.hashing import ContentDigest, digest_bytes, digest_file
from zonestore.core.logging import configure_logging, get_logger
from zonestore.core.manifest import ResourceManifest
from zonestore.core.paths import public_path, public_url, storage_key

__all__ = [
    "CollectionSettings",
    "ConcurrencySettings",
    "ContentDigest",
    "FilesystemStorageSettings",
    "PublishSettings",
    "ResourceManifest",
    "ZoneSettings",
    "ZoneStoreSettings",
    "configure_logging",
    "digest_bytes",
    "digest_file",
    "get_logger",
    "load_settings",
    "public_path",
    "public_url",
    "storage_key",
]
