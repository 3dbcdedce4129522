"""Outcome of a deployment run."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class RunStatus(str, Enum):
    """Overall status of a deployment."""

    SUCCESS = "success"
    """Every entry was processed"""

    PARTIAL_FAILURE = "partial_failure"
    """The run completed but some entries failed"""

    FATAL = "fatal"
    """The run was aborted (connection, target root or git failure)"""


@dataclass(frozen=True)
class EntryFailure:
    """A single entry that could not be deployed."""

    relative_path: str
    reason: str


def empty_stats() -> dict[str, int]:
    """Create an empty statistics dictionary."""
    return {
        "entries": 0,
        "uploads": 0,
        "skips": 0,
        "directories_created": 0,
        "directories_existing": 0,
        "failures": 0,
    }


@dataclass
class DeployResult:
    """Result of a deployment run."""

    status: RunStatus
    failures: list[EntryFailure] = field(default_factory=list)
    reason: Optional[str] = None
    """Error message for fatal runs"""

    stats: dict[str, int] = field(default_factory=empty_stats)
    revision: Optional[str] = None
    """Revision written to the remote marker, if any"""

    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.status == RunStatus.SUCCESS

    @classmethod
    def fatal(
        cls, reason: str, stats: Optional[dict[str, int]] = None, dry_run: bool = False
    ) -> "DeployResult":
        return cls(
            status=RunStatus.FATAL,
            reason=reason,
            stats=stats if stats is not None else empty_stats(),
            dry_run=dry_run,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert the result to a dictionary for JSON output."""
        return {
            "status": self.status.value,
            "reason": self.reason,
            "dry_run": self.dry_run,
            "revision": self.revision,
            "stats": dict(self.stats),
            "failures": [
                {"path": f.relative_path, "reason": f.reason} for f in self.failures
            ],
        }
