"""Resource metadata as seen by the storage and publication layers.

Resources are produced by an import and never mutated afterwards. Identity
is the SHA-1 of the content; filename and publication path are metadata.
"""

import mimetypes
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any, BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class ResourceMetadata(Protocol):
    """Minimal metadata needed to derive storage keys and public paths."""

    sha1: str
    filename: str
    relative_publication_path: str


@dataclass(frozen=True)
class Resource:
    """An imported, immutable resource.

    Attributes:
        sha1: Lowercase hex SHA-1 of the content (40 chars)
        filename: Original filename (metadata only)
        file_size: Content length in bytes
        collection_name: Collection the resource was imported into
        relative_publication_path: Empty for persistent resources, caller
            supplied prefix (e.g. "Packages/Site/") for static ones
        md5: Lowercase hex MD5 of the content, recorded on import
        media_type: MIME type, guessed from the filename when not given
    """

    sha1: str
    filename: str
    file_size: int
    collection_name: str
    relative_publication_path: str = ""
    md5: str | None = None
    media_type: str | None = field(default=None)

    def __post_init__(self) -> None:
        if self.media_type is None:
            guessed, _ = mimetypes.guess_type(self.filename)
            object.__setattr__(
                self, "media_type", guessed or "application/octet-stream"
            )

    @property
    def content_hash(self) -> str:
        """Alias for sha1."""
        return self.sha1

    @property
    def is_static(self) -> bool:
        """Whether the resource has a caller-supplied publication path."""
        return self.relative_publication_path != ""

    def with_publication_path(self, relative_path: str) -> "Resource":
        """Return a static-resource copy published under relative_path."""
        return replace(self, relative_publication_path=relative_path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sha1": self.sha1,
            "filename": self.filename,
            "file_size": self.file_size,
            "collection_name": self.collection_name,
            "relative_publication_path": self.relative_publication_path,
            "md5": self.md5,
            "media_type": self.media_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Resource":
        return cls(
            sha1=data["sha1"],
            filename=data["filename"],
            file_size=int(data["file_size"]),
            collection_name=data["collection_name"],
            relative_publication_path=data.get("relative_publication_path", ""),
            md5=data.get("md5"),
            media_type=data.get("media_type"),
        )


@dataclass(frozen=True)
class StorageObject:
    """A resource as enumerated from a storage, with a way to read its bytes.

    The opener returns a fresh stream positioned at the start; the caller
    owns and closes it.
    """

    resource: Resource
    opener: Callable[[], BinaryIO] = field(repr=False, compare=False)

    @property
    def sha1(self) -> str:
        return self.resource.sha1

    @property
    def filename(self) -> str:
        return self.resource.filename

    @property
    def relative_publication_path(self) -> str:
        return self.resource.relative_publication_path

    def open(self) -> BinaryIO:
        """Open a new stream over the object's content."""
        return self.opener()
