"""Publication engine."""

from zonestore.publishing.executor import TransferExecutor
from zonestore.publishing.target import ZoneTarget, same_zone

__all__ = ["TransferExecutor", "ZoneTarget", "same_zone"]
