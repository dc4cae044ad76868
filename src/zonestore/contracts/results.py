"""Operation outcomes for bulk publication.

These types answer: "What did a publish pass do to the remote zone?"

Failures are aggregated per resource rather than surfacing only the first
error, so a caller can see every path that did not make it.
"""

from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass(frozen=True)
class TransferOutcome:
    """Result of transferring one resource to its public path.

    Use the factory methods to create instances.
    """

    public_path: str
    sha1: str
    status: Literal["uploaded", "skipped", "failed"]
    error: str | None = None
    size_bytes: int | None = None

    @classmethod
    def uploaded(
        cls, public_path: str, sha1: str, size_bytes: int | None = None
    ) -> "TransferOutcome":
        return cls(
            public_path=public_path,
            sha1=sha1,
            status="uploaded",
            size_bytes=size_bytes,
        )

    @classmethod
    def skipped(cls, public_path: str, sha1: str) -> "TransferOutcome":
        """Already present at the target (skip_existing mode)."""
        return cls(public_path=public_path, sha1=sha1, status="skipped")

    @classmethod
    def failed(cls, public_path: str, sha1: str, error: str) -> "TransferOutcome":
        return cls(public_path=public_path, sha1=sha1, status="failed", error=error)

    @property
    def ok(self) -> bool:
        return self.status != "failed"


@dataclass
class PublishReport:
    """Result of one publish_collection pass."""

    collection: str
    target: str
    outcomes: list[TransferOutcome] = field(default_factory=list)
    pruned: list[str] = field(default_factory=list)
    prune_failures: dict[str, str] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def uploaded(self) -> list[str]:
        return [o.public_path for o in self.outcomes if o.status == "uploaded"]

    @property
    def skipped(self) -> list[str]:
        return [o.public_path for o in self.outcomes if o.status == "skipped"]

    @property
    def failed(self) -> dict[str, str]:
        return {
            o.public_path: o.error or "unknown error"
            for o in self.outcomes
            if o.status == "failed"
        }

    @property
    def succeeded_count(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed_count(self) -> int:
        return len(self.outcomes) - self.succeeded_count

    @property
    def ok(self) -> bool:
        """True when every transfer and every prune succeeded."""
        return self.failed_count == 0 and not self.prune_failures

    def summary(self) -> dict[str, Any]:
        """Counts for logging and CLI output."""
        return {
            "collection": self.collection,
            "target": self.target,
            "uploaded": len(self.uploaded),
            "skipped": len(self.skipped),
            "failed": self.failed_count,
            "pruned": len(self.pruned),
            "prune_failed": len(self.prune_failures),
            "duration_seconds": round(self.duration_seconds, 3),
        }
