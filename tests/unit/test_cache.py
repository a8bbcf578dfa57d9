"""Tests for MetadataCache: TTL expiry and bounded size."""

from __future__ import annotations

import pytest

from envsnap.core.cache import MetadataCache
from envsnap.models.snapshots import SnapshotGroup


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _group(n: int) -> SnapshotGroup:
    return SnapshotGroup(id=f"env-{n}", files=[".env"])


class TestMetadataCache:
    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValueError):
            MetadataCache(0)

    def test_put_and_get(self):
        cache = MetadataCache(10)
        cache.put(_group(1))
        assert cache.get("env-1") == _group(1)
        assert cache.get("env-2") is None

    def test_entries_expire(self):
        clock = FakeClock()
        cache = MetadataCache(10, clock=clock)
        cache.put(_group(1))
        clock.now = 9.9
        assert cache.get("env-1") is not None
        clock.now = 10.0
        assert cache.get("env-1") is None
        assert len(cache) == 0

    def test_evicts_oldest_when_full(self):
        clock = FakeClock()
        cache = MetadataCache(10, max_entries=2, clock=clock)
        cache.put(_group(1))
        clock.now = 1
        cache.put(_group(2))
        clock.now = 2
        cache.put(_group(3))
        assert cache.get("env-1") is None
        assert cache.get("env-3") is not None
        assert len(cache) == 2

    def test_invalidate_and_clear(self):
        cache = MetadataCache(10)
        cache.put(_group(1))
        cache.put(_group(2))
        cache.invalidate("env-1")
        assert cache.get("env-1") is None
        cache.clear()
        assert len(cache) == 0
