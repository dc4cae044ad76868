"""Path/identity policy: where resources live remotely.

Pure functions of resource metadata. Two resources with identical bytes
share a storage key; a public path depends only on sha1, filename and
relative_publication_path.

Remote layout:
    /{zone}/_{sha1}          stored objects
    /{zone}/{public_path}    published objects
"""

from zonestore.contracts.resources import ResourceMetadata
from zonestore.core.hashing import is_sha1

STORAGE_KEY_PREFIX = "_"


def storage_key(sha1: str) -> str:
    """Remote name of a resource's bytes in a content-addressed store.

    Raises:
        ValueError: If sha1 is not a lowercase hex SHA-1 digest
    """
    if not is_sha1(sha1):
        raise ValueError(f"Not a SHA-1 hex digest: {sha1!r}")
    return STORAGE_KEY_PREFIX + sha1


def public_path(resource: ResourceMetadata) -> str:
    """Zone-relative path a resource is published under.

    Static resources use their relative publication path, persistent
    resources a directory named after their hash.
    """
    if resource.relative_publication_path != "":
        return resource.relative_publication_path + resource.filename
    return resource.sha1 + "/" + resource.filename


def public_url(zone_domain: str, path: str, scheme: str = "http") -> str:
    """Public URL of a published path.

    Changing the scheme or the path derivation breaks links to content that
    is already published.
    """
    return f"{scheme}://{zone_domain}/{path}"


def zone_path(zone: str, path: str) -> str:
    """Absolute remote path of a zone-relative path."""
    return f"/{zone}/{path.lstrip('/')}"


def parent_path(remote_path: str) -> str:
    """Parent directory of an absolute remote path ("/" for top level)."""
    parent = remote_path.rstrip("/").rsplit("/", 1)[0]
    return parent or "/"


def is_nested(remote_path: str) -> bool:
    """Whether the parent of an absolute remote path is below the zone root.

    "/zone/_abc" -> False (parent is the zone root)
    "/zone/abc/file.txt" -> True
    """
    return parent_path(remote_path).count("/") >= 2
