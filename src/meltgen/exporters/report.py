"""
Outcome of an export run.

Collects per-kind results and every problem met along the way (dropped
metrics, transport failures) so the caller can report them together.
"""

from dataclasses import dataclass, field
from enum import Enum


class KindStatus(Enum):
    """What happened to one signal kind."""

    SENT = "sent"
    DRY_RUN = "dry-run"
    SKIPPED = "skipped"  # nothing to send
    FAILED = "failed"


@dataclass
class ExportIssue:
    """A single problem found while exporting."""

    kind: str
    message: str
    item: str | None = None
    fatal: bool = False

    def __str__(self) -> str:
        prefix = "[ERROR]" if self.fatal else "[DROPPED]"
        item_info = f" {self.item}" if self.item else ""
        return f"{prefix} ({self.kind}){item_info}: {self.message}"


@dataclass
class ExportReport:
    """Result of exporting one or more signal kinds."""

    statuses: dict[str, KindStatus] = field(default_factory=dict)
    errors: list[ExportIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when no kind failed; dropped items alone do not fail the run."""
        return not any(status == KindStatus.FAILED for status in self.statuses.values())

    def add_issue(self, issue: ExportIssue) -> None:
        self.errors.append(issue)

    def set_status(self, kind: str, status: KindStatus) -> None:
        self.statuses[kind] = status

    def merge(self, other: "ExportReport") -> None:
        """Merge another report into this one."""
        self.statuses.update(other.statuses)
        self.errors.extend(other.errors)

    def __str__(self) -> str:
        lines = ["Export succeeded" if self.ok else "Export failed"]
        for kind, status in self.statuses.items():
            lines.append(f"  {kind}: {status.value}")
        if self.errors:
            lines.append(f"\nIssues ({len(self.errors)}):")
            for issue in self.errors:
                lines.append(f"  - {issue}")
        return "\n".join(lines)
