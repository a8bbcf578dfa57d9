"""Result models for diff, lifecycle and integrity operations."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Diff
# ---------------------------------------------------------------------------

class DiffMode(str, Enum):
    """What a snapshot is compared against."""

    AGAINST_CURRENT = "current"
    AGAINST_PREVIOUS = "previous"


class DiffOp(str, Enum):
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"


class DiffLine(BaseModel):
    """One line of a line-level diff.

    ``sensitive`` is an advisory flag for keys that look like credentials.
    It never removes or masks the line.
    """

    model_config = ConfigDict(frozen=True)

    op: DiffOp
    text: str
    sensitive: bool = False


class FileDiff(BaseModel):
    """Diff of a single tracked file within a snapshot group."""

    model_config = ConfigDict(frozen=True)

    file: str
    old_label: str = ""
    new_label: str = ""
    lines: list[DiffLine] = Field(default_factory=list)
    no_previous: bool = False
    missing_artifact: bool = False

    @property
    def added(self) -> list[DiffLine]:
        return [line for line in self.lines if line.op == DiffOp.ADDED]

    @property
    def removed(self) -> list[DiffLine]:
        return [line for line in self.lines if line.op == DiffOp.REMOVED]

    @property
    def has_changes(self) -> bool:
        return any(line.op != DiffOp.UNCHANGED for line in self.lines)

    @property
    def sensitive_lines(self) -> list[DiffLine]:
        return [
            line for line in self.lines
            if line.sensitive and line.op != DiffOp.UNCHANGED
        ]


# ---------------------------------------------------------------------------
# Tags and retention
# ---------------------------------------------------------------------------

class TagChange(str, Enum):
    """Outcome of a tag edit.  The no-op outcomes are reported distinctly."""

    ADDED = "added"
    ALREADY_PRESENT = "already_present"
    REMOVED = "removed"
    NOT_PRESENT = "not_present"

    @property
    def mutated(self) -> bool:
        return self in (TagChange.ADDED, TagChange.REMOVED)


class PruneResult(BaseModel):
    """Outcome of a retention sweep."""

    model_config = ConfigDict(frozen=True)

    keep: int
    total_before: int
    deleted: list[str] = Field(default_factory=list)
    kept: list[str] = Field(default_factory=list)

    @property
    def nothing_to_prune(self) -> bool:
        return not self.deleted


class RestoreResult(BaseModel):
    """Outcome of restoring a snapshot group onto the working tree."""

    model_config = ConfigDict(frozen=True)

    snapshot_id: str
    restored: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Integrity
# ---------------------------------------------------------------------------

class HealthStatus(str, Enum):
    """Health of a stored group.

    When several kinds of problem occur in one group the most severe wins:
    MISSING > CORRUPTED > HEALTHY.
    """

    HEALTHY = "healthy"
    CORRUPTED = "corrupted"
    MISSING = "missing"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    def worst(self, other: HealthStatus) -> HealthStatus:
        return self if self.severity >= other.severity else other


_SEVERITY: dict[HealthStatus, int] = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.CORRUPTED: 1,
    HealthStatus.MISSING: 2,
}


class HealthReport(BaseModel):
    """Result of re-verifying one group's artifacts against recorded hashes."""

    model_config = ConfigDict(frozen=True)

    snapshot_id: str
    status: HealthStatus = HealthStatus.HEALTHY
    issues: list[str] = Field(default_factory=list)
    file_count: int = 0

    @property
    def healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY


class HealthSummary(BaseModel):
    """Health reports for every stored group plus counts by status."""

    model_config = ConfigDict(frozen=True)

    reports: list[HealthReport] = Field(default_factory=list)
    counts: dict[HealthStatus, int] = Field(
        default_factory=lambda: {status: 0 for status in HealthStatus}
    )

    @property
    def unhealthy(self) -> list[HealthReport]:
        return [r for r in self.reports if not r.healthy]
