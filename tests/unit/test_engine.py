"""Tests for SnapshotEngine: capture protocol, ids, restore, post-snapshot hooks."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from envsnap.config import ConfigurationError
from envsnap.core.context import SnapshotContext
from envsnap.core.engine import (
    MissingSourceFilesError,
    SnapshotEngine,
    format_snapshot_id,
)
from envsnap.core.hasher import sha256_hex
from envsnap.core.store import SnapshotNotFoundError, has_tag
from envsnap.models.config import ProjectConfig
from envsnap.models.events import SnapshotEvent
from envsnap.models.snapshots import CaptureIdentity, FileCaptureStatus
from envsnap.notify.dispatcher import NotificationDispatcher


class RecordingNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.events: list[SnapshotEvent] = []
        self.fail = fail

    @property
    def notifier_name(self) -> str:
        return "recording"

    def notify(self, event: SnapshotEvent) -> None:
        if self.fail:
            raise RuntimeError("boom")
        self.events.append(event)


class TestSnapshotIds:
    def test_format(self):
        moment = datetime(2026, 3, 4, 5, 6, 7, 890123, tzinfo=timezone.utc)
        assert format_snapshot_id(moment) == "env-2026-03-04T05-06-07-890123Z"

    def test_collision_gets_suffix(self, context: SnapshotContext, write_env):
        write_env("A=1\n")
        fixed = datetime(2026, 1, 1, tzinfo=timezone.utc)
        engine = SnapshotEngine(context, clock=lambda: fixed)

        first = engine.create_snapshot()
        second = engine.create_snapshot()
        third = engine.create_snapshot()

        assert second.id == f"{first.id}-01"
        assert third.id == f"{first.id}-02"
        assert [g.id for g in engine.list_groups()] == [first.id, second.id, third.id]


class TestCreateSnapshot:
    def test_captures_all_tracked_files(self, engine: SnapshotEngine, write_env):
        write_env("A=1\n")
        write_env("B=2\n", ".env.local")

        group = engine.create_snapshot(description="first", tags=["prod", "prod", "v1"])

        assert group.files == [".env", ".env.local"]
        assert group.description == "first"
        assert group.tags == ["prod", "v1"]
        assert group.captured_by == CaptureIdentity(user="tester", hostname="testbox")
        assert engine.store.read_artifact(group.id, ".env") == b"A=1\n"
        assert engine.store.read_artifact(group.id, ".env.local") == b"B=2\n"
        assert engine.store.read_metadata(group.id) == group

    def test_stats(self, engine: SnapshotEngine, write_env):
        write_env("A=1\n")
        write_env("LONGER=value\n", ".env.local")

        group = engine.create_snapshot()

        stat = group.stats.stat_for(".env")
        assert stat.size == 4
        assert stat.hash == sha256_hex(b"A=1\n")
        assert group.stats.total_size == 4 + len(b"LONGER=value\n")
        assert group.stats.capture_duration_ms >= 0
        assert not group.partial

    def test_files_order_follows_tracked_order(self, context: SnapshotContext, write_env):
        write_env("A=1\n")
        write_env("B=2\n", ".env.local")
        engine = SnapshotEngine(context)
        group = engine.create_snapshot(tracked_files=[".env.local", ".env"])
        assert group.files == [".env.local", ".env"]
        assert [s.name for s in group.stats.files] == [".env.local", ".env"]

    def test_partial_capture_records_failed_file(self, engine: SnapshotEngine, write_env):
        write_env("A=1\n")

        group = engine.create_snapshot()

        assert group.files == [".env", ".env.local"]
        assert group.partial
        failed = group.stats.stat_for(".env.local")
        assert failed.status == FileCaptureStatus.FAILED
        assert failed.error == "file not found"
        assert group.stats.total_size == 4
        assert not engine.store.artifact_exists(group.id, ".env.local")

    def test_all_files_missing(self, engine: SnapshotEngine):
        with pytest.raises(MissingSourceFilesError) as exc_info:
            engine.create_snapshot()
        assert [p.name for p in exc_info.value.missing] == [".env", ".env.local"]
        assert engine.store.list_group_ids() == []

    def test_duplicate_base_names_rejected(self, engine: SnapshotEngine, project_root: Path):
        (project_root / "a").mkdir()
        (project_root / "b").mkdir()
        with pytest.raises(ConfigurationError):
            engine.create_snapshot(tracked_files=["a/.env", "b/.env"])

    def test_empty_tracked_list_rejected(self, engine: SnapshotEngine):
        with pytest.raises(ConfigurationError):
            engine.create_snapshot(tracked_files=[])

    def test_ids_are_chronological(self, engine: SnapshotEngine, write_env):
        write_env("A=1\n")
        ids = [engine.create_snapshot().id for _ in range(3)]
        assert ids == sorted(ids)
        assert [g.id for g in engine.list_groups()] == ids


class TestListGroups:
    def test_filter_by_tag(self, engine: SnapshotEngine, write_env):
        write_env("A=1\n")
        engine.create_snapshot()
        tagged = engine.create_snapshot(tags=["release"])
        assert [g.id for g in engine.list_groups(has_tag("release"))] == [tagged.id]


class TestRestore:
    def test_restore_overwrites_live_files(self, engine: SnapshotEngine, write_env):
        env = write_env("A=1\n")
        local = write_env("B=1\n", ".env.local")
        group = engine.create_snapshot()
        env.write_text("A=2\n")
        local.unlink()

        result = engine.restore(group.id)

        assert result.restored == [".env", ".env.local"]
        assert result.missing == []
        assert env.read_text() == "A=1\n"
        assert local.read_text() == "B=1\n"

    def test_restore_reports_missing_artifacts(self, engine: SnapshotEngine, write_env):
        env = write_env("A=1\n")
        write_env("B=1\n", ".env.local")
        group = engine.create_snapshot()
        engine.store.delete_artifact(group.id, ".env.local")
        env.write_text("A=2\n")

        result = engine.restore(group.id.removeprefix("env-"))

        assert result.restored == [".env"]
        assert result.missing == [".env.local"]
        assert env.read_text() == "A=1\n"

    def test_restore_unknown_id(self, engine: SnapshotEngine):
        with pytest.raises(SnapshotNotFoundError):
            engine.restore("env-2000-01-01T00-00-00-000000Z")

    def test_preview_restore_shows_snapshot_as_new(self, engine: SnapshotEngine, write_env):
        env = write_env("A=1\n")
        write_env("B=1\n", ".env.local")
        group = engine.create_snapshot()
        env.write_text("A=2\n")

        diffs = {d.file: d for d in engine.preview_restore(group.id)}

        assert [line.text for line in diffs[".env"].removed] == ["A=2"]
        assert [line.text for line in diffs[".env"].added] == ["A=1"]
        assert not diffs[".env.local"].has_changes


class TestPostSnapshot:
    def test_dispatches_event(self, context: SnapshotContext, write_env):
        write_env("A=1\n")
        notifier = RecordingNotifier()
        engine = SnapshotEngine(context, dispatcher=NotificationDispatcher([notifier]))

        group = engine.create_snapshot(description="hello")

        assert len(notifier.events) == 1
        assert notifier.events[0].snapshot_id == group.id
        assert notifier.events[0].description == "hello"

    def test_notifier_failure_does_not_fail_snapshot(self, context: SnapshotContext, write_env):
        write_env("A=1\n")
        engine = SnapshotEngine(
            context, dispatcher=NotificationDispatcher([RecordingNotifier(fail=True)])
        )
        group = engine.create_snapshot()
        assert engine.store.metadata_exists(group.id)

    def test_retention_applied_after_snapshot(self, project_root: Path, write_env, clock):
        write_env("A=1\n")
        context = SnapshotContext(project_root, ProjectConfig(max_snapshots=2))
        engine = SnapshotEngine(context, clock=clock)

        ids = [engine.create_snapshot().id for _ in range(4)]

        assert [g.id for g in engine.list_groups()] == ids[-2:]
