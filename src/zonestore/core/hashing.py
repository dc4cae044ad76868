"""Content digests used for resource identity.

SHA-1 is the identity hash (40 hex chars, part of every storage key and
persistent public path). MD5 is recorded alongside as metadata.
"""

import hashlib
import re
from pathlib import Path
from typing import BinaryIO, NamedTuple

_CHUNK_SIZE = 64 * 1024
_SHA1_PATTERN = re.compile(r"^[0-9a-f]{40}$")


class ContentDigest(NamedTuple):
    sha1: str
    md5: str
    size: int


def is_sha1(value: str) -> bool:
    """Whether value is a lowercase hex SHA-1 digest."""
    return bool(_SHA1_PATTERN.match(value))


def digest_bytes(content: bytes) -> ContentDigest:
    return ContentDigest(
        sha1=hashlib.sha1(content).hexdigest(),
        md5=hashlib.md5(content).hexdigest(),
        size=len(content),
    )


def digest_stream(stream: BinaryIO) -> ContentDigest:
    """Digest a stream from its current position to EOF."""
    sha1 = hashlib.sha1()
    md5 = hashlib.md5()
    size = 0
    for chunk in iter(lambda: stream.read(_CHUNK_SIZE), b""):
        sha1.update(chunk)
        md5.update(chunk)
        size += len(chunk)
    return ContentDigest(sha1=sha1.hexdigest(), md5=md5.hexdigest(), size=size)


def digest_file(path: Path) -> ContentDigest:
    with open(path, "rb") as f:
        return digest_stream(f)
