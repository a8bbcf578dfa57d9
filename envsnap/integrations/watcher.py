"""Polling watcher that snapshots tracked files when their content changes.

The watcher hashes every tracked file once per interval.  When any digest
differs from the previous poll it runs one full ``create_snapshot`` before
polling again, so captures never overlap.  Touching a file without
changing its bytes does not trigger a snapshot.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from envsnap.core.engine import SnapshotEngine
from envsnap.core.hasher import sha256_file
from envsnap.models.snapshots import SnapshotGroup

logger = logging.getLogger(__name__)

Fingerprint = dict[Path, str | None]


def fingerprint(paths: Sequence[Path]) -> Fingerprint:
    """Content digest of each path; ``None`` for files that do not exist."""
    result: Fingerprint = {}
    for path in paths:
        try:
            result[path] = sha256_file(path)
        except FileNotFoundError:
            result[path] = None
    return result


class SnapshotWatcher:
    """Creates a snapshot each time the tracked files change.

    Parameters
    ----------
    engine:
        The engine that captures snapshots.
    interval:
        Seconds between polls.
    on_snapshot:
        Optional callback receiving each new group.
    sleep:
        Sleep function, injectable for tests.
    """

    def __init__(
        self,
        engine: SnapshotEngine,
        *,
        interval: float = 1.0,
        on_snapshot: Callable[[SnapshotGroup], None] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._engine = engine
        self._interval = interval
        self._on_snapshot = on_snapshot
        self._sleep = sleep
        self._paths = engine.context.tracked_files()
        self._last: Fingerprint = fingerprint(self._paths)

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def poll(self) -> SnapshotGroup | None:
        """Check once; snapshot and return the new group if anything changed."""
        current = fingerprint(self._paths)
        if current == self._last:
            return None
        changed = [p.name for p in self._paths if current.get(p) != self._last.get(p)]
        self._last = current
        logger.info("Change detected in %s, creating snapshot", ", ".join(changed))
        try:
            group = self._engine.create_snapshot()
        except RuntimeError as exc:
            logger.error("Snapshot after change failed: %s", exc)
            return None
        if self._on_snapshot is not None:
            self._on_snapshot(group)
        return group

    def run(self, max_polls: int | None = None) -> None:
        """Poll until interrupted, or for *max_polls* iterations."""
        polls = 0
        while max_polls is None or polls < max_polls:
            self.poll()
            polls += 1
            self._sleep(self._interval)
