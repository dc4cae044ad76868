"""Exception taxonomy shared by every layer.

Configuration problems are fatal and raised before any remote mutation.
Transport problems propagate to the caller of the operation that triggered
them; NotFoundError is the one kind callers recover from locally when their
contract is "return absence".
"""


class ZoneStoreError(Exception):
    """Base class for all zonestore errors."""


class ConfigurationError(ZoneStoreError):
    """Invalid or unsafe configuration (fatal).

    Raised for missing credentials, unknown references between sections, and
    publishing a collection into the zone it is stored in.
    """


class StorageError(ZoneStoreError):
    """Local side of an import failed (unreadable source file, bad stream)."""


class PublishError(ZoneStoreError):
    """A single resource cannot be published (no data in the source storage)."""


class TransportError(ZoneStoreError):
    """Remote filesystem operation failed.

    Attributes:
        remote_path: Zone-relative path the operation was working on, if any
    """

    def __init__(self, message: str, *, remote_path: str | None = None) -> None:
        super().__init__(message)
        self.remote_path = remote_path


class TransportConnectionError(TransportError):
    """Session could not be established or was lost."""


class NotFoundError(TransportError):
    """Remote object does not exist."""
