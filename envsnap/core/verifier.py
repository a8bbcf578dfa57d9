"""Integrity verification of stored snapshot groups.

Each artifact listed in a group's ``files`` is re-hashed and compared
with the digest recorded at capture time.  Every file is checked; the
verifier never stops at the first problem.  The group's status is the
most severe problem found: MISSING > CORRUPTED > HEALTHY.

Integrity problems are reported, never raised.
"""

from __future__ import annotations

import logging

from envsnap.core.hasher import sha256_hex
from envsnap.core.store import CorruptMetadataError, SnapshotStore
from envsnap.models.reports import HealthReport, HealthStatus, HealthSummary
from envsnap.models.snapshots import FileCaptureStatus

logger = logging.getLogger(__name__)


class IntegrityVerifier:
    """Re-hashes stored artifacts and classifies group health."""

    def __init__(self, store: SnapshotStore) -> None:
        self._store = store

    def verify(self, snapshot_id: str) -> HealthReport:
        """Verify one group.

        Raises ``SnapshotNotFoundError`` for an unknown id.  A metadata
        record that exists but cannot be read is reported as CORRUPTED.
        """
        try:
            group = self._store.read_metadata(snapshot_id)
        except CorruptMetadataError as exc:
            return HealthReport(
                snapshot_id=exc.snapshot_id,
                status=HealthStatus.CORRUPTED,
                issues=[str(exc)],
            )

        status = HealthStatus.HEALTHY
        issues: list[str] = []

        for base_name in group.files:
            stat = group.stats.stat_for(base_name)
            if stat is not None and stat.status == FileCaptureStatus.FAILED:
                # Never captured; nothing was stored to verify.
                issues.append(f"File was not captured: {base_name} ({stat.error or 'unknown error'})")
                status = status.worst(HealthStatus.MISSING)
                continue

            if not self._store.artifact_exists(group.id, base_name):
                issues.append(f"Missing snapshot file: {base_name}")
                status = status.worst(HealthStatus.MISSING)
                continue

            expected = stat.hash if stat is not None else None
            if not expected:
                continue

            actual = sha256_hex(self._store.read_artifact(group.id, base_name))
            if actual != expected:
                issues.append(f"Hash mismatch for {base_name}: expected {expected}, got {actual}")
                status = status.worst(HealthStatus.CORRUPTED)

        if issues:
            logger.warning("Snapshot %s is %s: %s", group.id, status.value, "; ".join(issues))
        return HealthReport(
            snapshot_id=group.id,
            status=status,
            issues=issues,
            file_count=len(group.files),
        )

    def verify_all(self) -> HealthSummary:
        """Verify every stored group, including ones with unreadable metadata."""
        reports = [self.verify(group_id) for group_id in self._store.list_group_ids()]
        counts = {status: 0 for status in HealthStatus}
        for report in reports:
            counts[report.status] += 1
        return HealthSummary(reports=reports, counts=counts)
