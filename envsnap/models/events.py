"""Notification event models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from envsnap.models.snapshots import SnapshotGroup


class EventType(str, Enum):
    SNAPSHOT_CREATED = "snapshot_created"


class SnapshotEvent(BaseModel):
    """Payload handed to every notifier after a lifecycle event."""

    model_config = ConfigDict(frozen=True)

    event_type: EventType = EventType.SNAPSHOT_CREATED
    snapshot_id: str
    description: str | None = None
    files: list[str] = Field(default_factory=list)
    user: str | None = None
    hostname: str | None = None
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @classmethod
    def snapshot_created(cls, group: SnapshotGroup) -> SnapshotEvent:
        return cls(
            event_type=EventType.SNAPSHOT_CREATED,
            snapshot_id=group.id,
            description=group.description,
            files=list(group.files),
            user=group.captured_by.user,
            hostname=group.captured_by.hostname,
        )
