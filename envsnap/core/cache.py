"""Optional read-through cache for snapshot metadata records.

The store works without a cache.  When one is injected, ``read_metadata``
consults it first and every write or delete through the store keeps it
coherent.  Entries expire after ``ttl_seconds`` so edits made by another
process become visible again after at most one TTL.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from envsnap.models.snapshots import SnapshotGroup


class MetadataCache:
    """TTL cache of ``SnapshotGroup`` records keyed by group id.

    Parameters
    ----------
    ttl_seconds:
        Lifetime of an entry.  Must be positive.
    max_entries:
        Upper bound on cached records; the oldest entry is evicted first.
    clock:
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[float, SnapshotGroup]] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, group_id: str) -> SnapshotGroup | None:
        """Return the cached record, or ``None`` if absent or expired."""
        with self._lock:
            entry = self._entries.get(group_id)
            if entry is None:
                return None
            expires_at, group = entry
            if self._clock() >= expires_at:
                del self._entries[group_id]
                return None
            return group

    def put(self, group: SnapshotGroup) -> None:
        with self._lock:
            if group.id not in self._entries and len(self._entries) >= self._max_entries:
                oldest = min(self._entries, key=lambda k: self._entries[k][0])
                del self._entries[oldest]
            self._entries[group.id] = (self._clock() + self._ttl, group)

    def invalidate(self, group_id: str) -> None:
        with self._lock:
            self._entries.pop(group_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
