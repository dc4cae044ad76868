"""Scoped scratch buffers for copy-through transfers.

The transport has no server-side copy, so cross-zone copies go through a
local buffer. Small payloads stay in memory; larger ones spill to a
temporary file that is removed when the buffer is closed.
"""

import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from typing import BinaryIO, cast

DEFAULT_MEMORY_LIMIT = 8 * 1024 * 1024
_CHUNK_SIZE = 64 * 1024


def open_buffer(memory_limit: int = DEFAULT_MEMORY_LIMIT) -> BinaryIO:
    """New read/write buffer owned by the caller.

    A memory_limit of 0 puts the buffer on disk from the start.
    """
    if memory_limit <= 0:
        on_disk = tempfile.TemporaryFile(mode="w+b", prefix="zonestore-")  # noqa: SIM115
        return cast(BinaryIO, on_disk)
    buffer = tempfile.SpooledTemporaryFile(  # noqa: SIM115 - caller owns lifecycle
        max_size=memory_limit, mode="w+b", prefix="zonestore-"
    )
    return cast(BinaryIO, buffer)


@contextmanager
def scratch_buffer(memory_limit: int = DEFAULT_MEMORY_LIMIT) -> Iterator[BinaryIO]:
    """Yield a buffer that is discarded on exit, including on errors."""
    buffer = open_buffer(memory_limit)
    try:
        yield buffer
    finally:
        buffer.close()


def copy_stream(source: BinaryIO, destination: BinaryIO) -> int:
    """Copy source to destination from their current positions. Returns bytes copied."""
    copied = 0
    for chunk in iter(lambda: source.read(_CHUNK_SIZE), b""):
        destination.write(chunk)
        copied += len(chunk)
    return copied
