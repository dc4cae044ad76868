"""Shared contracts for cross-boundary data types.

Import pattern:
    from zonestore.contracts import Resource, PublishReport, NotFoundError
"""

from zonestore.contracts.errors import (
    ConfigurationError,
    NotFoundError,
    PublishError,
    StorageError,
    TransportConnectionError,
    TransportError,
    ZoneStoreError,
)
from zonestore.contracts.protocols import (
    Collection,
    ResourceRepository,
    Storage,
    Transport,
    WritableStorage,
)
from zonestore.contracts.resources import Resource, ResourceMetadata, StorageObject
from zonestore.contracts.results import PublishReport, TransferOutcome

__all__ = [
    "Collection",
    "ConfigurationError",
    "NotFoundError",
    "PublishError",
    "PublishReport",
    "Resource",
    "ResourceMetadata",
    "ResourceRepository",
    "Storage",
    "StorageError",
    "StorageObject",
    "TransferOutcome",
    "Transport",
    "TransportConnectionError",
    "TransportError",
    "WritableStorage",
    "ZoneStoreError",
]
