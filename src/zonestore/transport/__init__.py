"""Transport backends: remote filesystem sessions scoped to a zone."""

from zonestore.transport.ftp import FtpTransport
from zonestore.transport.local import LocalTransport
from zonestore.transport.manager import TransportManager
from zonestore.transport.pool import TransportPool

__all__ = ["FtpTransport", "LocalTransport", "TransportManager", "TransportPool"]
