"""Chronological index of snapshot groups.

The snapshot directory is the database; this index is the ordered view
over it.  Groups are totally ordered by ``(created_at, id)``: creation
time first, ties broken by plain string comparison of the ids.  Because
ids are allocated from the same UTC clock, this order also matches id
order for everything the engine writes.

The index is rebuilt from the store on demand and never persisted.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Iterable, Iterator
from datetime import datetime

from envsnap.core.store import SnapshotStore
from envsnap.models.snapshots import SnapshotGroup, normalize_snapshot_id


def chronological_key(group: SnapshotGroup) -> tuple[datetime, str]:
    return (group.created_at, group.id)


class SnapshotIndex:
    """An immutable, ordered view of snapshot groups (oldest first)."""

    def __init__(self, groups: Iterable[SnapshotGroup]) -> None:
        self._groups: list[SnapshotGroup] = sorted(groups, key=chronological_key)
        self._keys = [chronological_key(g) for g in self._groups]
        self._by_id = {g.id: g for g in self._groups}

    @classmethod
    def from_store(cls, store: SnapshotStore) -> SnapshotIndex:
        return cls(store.list_groups())

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self) -> Iterator[SnapshotGroup]:
        return iter(self._groups)

    def __contains__(self, group_id: object) -> bool:
        return isinstance(group_id, str) and normalize_snapshot_id(group_id) in self._by_id

    @property
    def groups(self) -> list[SnapshotGroup]:
        return list(self._groups)

    @property
    def ids(self) -> list[str]:
        return [g.id for g in self._groups]

    def get(self, group_id: str) -> SnapshotGroup | None:
        return self._by_id.get(normalize_snapshot_id(group_id))

    def latest(self) -> SnapshotGroup | None:
        return self._groups[-1] if self._groups else None

    def oldest(self, count: int) -> list[SnapshotGroup]:
        """The *count* oldest groups, oldest first."""
        return self._groups[:max(count, 0)]

    def newest(self, count: int) -> list[SnapshotGroup]:
        """The *count* newest groups, oldest first."""
        if count <= 0:
            return []
        return self._groups[-count:]

    def previous(self, group: SnapshotGroup, base_name: str) -> SnapshotGroup | None:
        """The latest group strictly before *group* that also tracked *base_name*.

        *group* need not be in the index; its position is found from its
        ``(created_at, id)`` key.
        """
        position = bisect_left(self._keys, chronological_key(group))
        for candidate in reversed(self._groups[:position]):
            if base_name in candidate.files:
                return candidate
        return None
