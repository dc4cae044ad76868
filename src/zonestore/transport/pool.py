"""Bounded pool of transport sessions.

Transport sessions are stateful and single-threaded, so each concurrent
worker gets its own. The pool creates sessions lazily up to `size`, hands
them out through lease(), and keeps idle ones connected for reuse.

Usage:
    pool = TransportPool(lambda: manager.create(settings), size=4)
    with pool.lease() as transport:
        transport.upload(b"...", "path/file.txt")
    pool.close()
"""

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from zonestore.contracts.errors import TransportConnectionError, TransportError
from zonestore.contracts.protocols import Transport
from zonestore.core.logging import get_logger

logger = get_logger(__name__)


class TransportPool:
    """Hands out one connected transport per concurrent caller."""

    def __init__(self, factory: Callable[[], Transport], size: int = 1) -> None:
        if size < 1:
            raise ValueError(f"pool size must be positive, got {size}")
        self._factory = factory
        self._size = size
        self._slots = threading.BoundedSemaphore(size)
        self._lock = threading.Lock()
        self._idle: list[Transport] = []
        self._created = 0
        self._closed = False

    @property
    def size(self) -> int:
        return self._size

    @property
    def created_count(self) -> int:
        """Sessions currently owned by the pool (idle or leased)."""
        return self._created

    def __enter__(self) -> "TransportPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def lease(self) -> Iterator[Transport]:
        """Borrow a connected transport; blocks while all sessions are leased.

        A transport whose session failed (TransportConnectionError) is closed
        and dropped instead of being returned to the pool.
        """
        if self._closed:
            raise TransportError("transport pool is closed")

        self._slots.acquire()
        try:
            transport = self._checkout()
        except BaseException:
            self._slots.release()
            raise

        healthy = True
        try:
            transport.connect()
            yield transport
        except TransportConnectionError:
            healthy = False
            raise
        finally:
            self._checkin(transport, healthy)
            self._slots.release()

    def _checkout(self) -> Transport:
        with self._lock:
            if self._idle:
                return self._idle.pop()
            transport = self._factory()
            self._created += 1
            return transport

    def _checkin(self, transport: Transport, healthy: bool) -> None:
        with self._lock:
            if healthy and not self._closed:
                self._idle.append(transport)
                return
            self._created -= 1
        logger.debug("discarding transport session", transport=repr(transport))
        transport.close()

    def close(self) -> None:
        """Close idle sessions; leased ones are closed when returned."""
        with self._lock:
            self._closed = True
            idle, self._idle = self._idle, []
            self._created -= len(idle)
        for transport in idle:
            transport.close()
