"""Snapshot group models: the persisted metadata record of one capture.

A snapshot group is immutable except for its ``description`` and ``tags``.
Edits never mutate an instance in place: they produce a new model via
``model_copy(update=...)`` which the store then re-persists.
"""

from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SNAPSHOT_ID_PREFIX = "env-"

# Records that carry no usable timestamp sort before every dated record.
UNDATED = datetime(1970, 1, 1, tzinfo=timezone.utc)

_ID_TIMESTAMP = re.compile(
    r"^(?:env-)?(\d{4}-\d{2}-\d{2})T(\d{2})-(\d{2})-(\d{2})(?:[-.](\d{1,6}))?Z"
)


class FileCaptureStatus(str, Enum):
    """Outcome of capturing a single tracked file."""

    CAPTURED = "captured"
    FAILED = "failed"


class FileStat(BaseModel):
    """Per-file capture record.

    ``hash`` is the SHA-256 hex digest of the captured bytes.  Records
    written by older versions may lack it; the verifier skips those.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    size: int | None = None
    hash: str | None = None
    status: FileCaptureStatus = FileCaptureStatus.CAPTURED
    error: str | None = None

    @property
    def captured(self) -> bool:
        return self.status == FileCaptureStatus.CAPTURED


class CaptureStats(BaseModel):
    """Aggregate statistics for one capture."""

    model_config = ConfigDict(frozen=True)

    total_size: int = 0
    capture_duration_ms: float = 0.0
    files: list[FileStat] = Field(default_factory=list)

    def stat_for(self, name: str) -> FileStat | None:
        """Return the recorded stat for *name*, if any."""
        for stat in self.files:
            if stat.name == name:
                return stat
        return None

    @property
    def failed_files(self) -> list[FileStat]:
        return [s for s in self.files if not s.captured]


class CaptureIdentity(BaseModel):
    """Who captured the snapshot, and where.  Both fields are best-effort."""

    model_config = ConfigDict(frozen=True)

    user: str | None = None
    hostname: str | None = None


class GitInfo(BaseModel):
    """Source-control position at capture time."""

    model_config = ConfigDict(frozen=True)

    hash: str
    branch: str | None = None
    remote: str | None = None

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


class SnapshotGroup(BaseModel):
    """One versioned capture of every tracked file, sharing one id.

    ``files`` is the authoritative membership of the group: diff, restore
    and verify iterate exactly this list, never the directory listing.

    Older records store ``timestamp``, ``user`` and ``hostname`` at the
    top level instead of ``created_at`` and ``captured_by``.  Those are
    mapped on load; a record with no timestamp at all takes its creation
    time from the id, or ``UNDATED`` when the id is not time-derived.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    files: list[str]
    captured_by: CaptureIdentity = Field(default_factory=CaptureIdentity)
    git: GitInfo | None = None
    created_at: datetime = UNDATED
    stats: CaptureStats = Field(default_factory=CaptureStats)

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy_record(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        legacy_timestamp = data.pop("timestamp", None)
        if data.get("created_at") is None:
            data["created_at"] = legacy_timestamp or timestamp_from_id(data.get("id", ""))
        user = data.pop("user", None)
        hostname = data.pop("hostname", None)
        if "captured_by" not in data and (user or hostname):
            data["captured_by"] = {"user": user, "hostname": hostname}
        return data

    @field_validator("files")
    @classmethod
    def _flat_names(cls, value: list[str]) -> list[str]:
        for name in value:
            validate_base_name(name)
        return value

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def short_id(self) -> str:
        """The id without the ``env-`` scheme prefix."""
        return self.id.removeprefix(SNAPSHOT_ID_PREFIX)

    @property
    def partial(self) -> bool:
        """True when some, but not all, files failed to capture."""
        return bool(self.stats.failed_files)


def normalize_snapshot_id(snapshot_id: str) -> str:
    """Return *snapshot_id* with the ``env-`` scheme prefix applied.

    >>> normalize_snapshot_id("2026-01-02T03-04-05-000006Z")
    'env-2026-01-02T03-04-05-000006Z'
    >>> normalize_snapshot_id("env-2026-01-02T03-04-05-000006Z")
    'env-2026-01-02T03-04-05-000006Z'
    """
    snapshot_id = snapshot_id.strip()
    if snapshot_id.startswith(SNAPSHOT_ID_PREFIX):
        return snapshot_id
    return f"{SNAPSHOT_ID_PREFIX}{snapshot_id}"


def timestamp_from_id(snapshot_id: str) -> datetime:
    """Recover the UTC creation time encoded in a time-derived id.

    Accepts any fractional precision up to microseconds and ignores a
    trailing collision suffix.  Returns ``UNDATED`` for other ids.

    >>> timestamp_from_id("env-2020-01-01T00-00-00-000Z")
    datetime.datetime(2020, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)
    """
    match = _ID_TIMESTAMP.match(snapshot_id or "")
    if match is None:
        return UNDATED
    day, hour, minute, second, fraction = match.groups()
    try:
        moment = datetime.strptime(f"{day}T{hour}:{minute}:{second}", "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return UNDATED
    micro = int((fraction or "0").ljust(6, "0"))
    return moment.replace(microsecond=micro, tzinfo=timezone.utc)


def validate_base_name(base_name: str) -> str:
    """Reject names that cannot be stored as a flat artifact file."""
    if not base_name or base_name in (".", ".."):
        raise ValueError(f"Invalid tracked file name: {base_name!r}")
    if "/" in base_name or "\\" in base_name or os.sep in base_name:
        raise ValueError(f"Tracked file name must not contain a path separator: {base_name!r}")
    return base_name
