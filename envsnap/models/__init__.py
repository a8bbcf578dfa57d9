"""envsnap data models: all Pydantic v2, all frozen (immutable)."""

from envsnap.models.config import HookConfig, HookType, ProjectConfig
from envsnap.models.events import EventType, SnapshotEvent
from envsnap.models.reports import (
    DiffLine,
    DiffMode,
    DiffOp,
    FileDiff,
    HealthReport,
    HealthStatus,
    HealthSummary,
    PruneResult,
    RestoreResult,
    TagChange,
)
from envsnap.models.snapshots import (
    SNAPSHOT_ID_PREFIX,
    CaptureIdentity,
    CaptureStats,
    FileCaptureStatus,
    FileStat,
    GitInfo,
    SnapshotGroup,
    normalize_snapshot_id,
)

__all__ = [
    # snapshots
    "SNAPSHOT_ID_PREFIX",
    "CaptureIdentity",
    "CaptureStats",
    "FileCaptureStatus",
    "FileStat",
    "GitInfo",
    "SnapshotGroup",
    "normalize_snapshot_id",
    # reports
    "DiffLine",
    "DiffMode",
    "DiffOp",
    "FileDiff",
    "HealthReport",
    "HealthStatus",
    "HealthSummary",
    "PruneResult",
    "RestoreResult",
    "TagChange",
    # config
    "HookConfig",
    "HookType",
    "ProjectConfig",
    # events
    "EventType",
    "SnapshotEvent",
]
