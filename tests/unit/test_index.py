"""Tests for SnapshotIndex: chronological order and previous-snapshot lookup."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from envsnap.core.index import SnapshotIndex
from envsnap.models.snapshots import SnapshotGroup

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _group(group_id: str, minutes: int, files: list[str] | None = None) -> SnapshotGroup:
    return SnapshotGroup(
        id=group_id,
        files=files or [".env"],
        created_at=T0 + timedelta(minutes=minutes),
    )


class TestSnapshotIndex:
    def test_orders_by_created_at(self):
        index = SnapshotIndex([_group("env-c", 2), _group("env-a", 0), _group("env-b", 1)])
        assert index.ids == ["env-a", "env-b", "env-c"]
        assert index.latest().id == "env-c"

    def test_ties_broken_by_id(self):
        index = SnapshotIndex([_group("env-x-01", 0), _group("env-x", 0)])
        assert index.ids == ["env-x", "env-x-01"]

    def test_oldest_and_newest(self):
        index = SnapshotIndex([_group(f"env-{i}", i) for i in range(5)])
        assert [g.id for g in index.oldest(2)] == ["env-0", "env-1"]
        assert [g.id for g in index.newest(2)] == ["env-3", "env-4"]
        assert index.newest(0) == []
        assert index.oldest(-1) == []

    def test_contains_and_get_accept_prefixless_ids(self):
        index = SnapshotIndex([_group("env-a", 0)])
        assert "a" in index
        assert "env-a" in index
        assert "env-b" not in index
        assert index.get("a").id == "env-a"

    def test_empty_index(self):
        index = SnapshotIndex([])
        assert len(index) == 0
        assert index.latest() is None

    def test_previous_skips_groups_without_the_file(self):
        first = _group("env-1", 0, [".env"])
        second = _group("env-2", 1, [".env.local"])
        third = _group("env-3", 2, [".env", ".env.local"])
        index = SnapshotIndex([first, second, third])

        assert index.previous(third, ".env").id == "env-1"
        assert index.previous(third, ".env.local").id == "env-2"
        assert index.previous(first, ".env") is None

    def test_previous_for_group_not_in_index(self):
        index = SnapshotIndex([_group("env-1", 0)])
        later = _group("env-9", 10)
        assert index.previous(later, ".env").id == "env-1"
