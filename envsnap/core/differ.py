"""Retrieval and diff engine.

Resolves snapshot ids to groups, finds the previous snapshot of a tracked
file in chronological order, and produces line-level diffs.

Diff direction is always older → newer:

* ``AGAINST_CURRENT``: stored snapshot → live file on disk
* ``AGAINST_PREVIOUS``: previous snapshot of the file → this snapshot
* ``preview_restore``: live file → stored snapshot (what a restore would do)

Lines whose key (the text before the first ``=``) looks like a credential
are flagged ``sensitive``.  The flag is advisory: nothing is masked or
dropped.  Only an explicit ``ignore`` list removes lines, before diffing.
"""

from __future__ import annotations

import difflib
import logging
import re
from collections.abc import Iterable
from pathlib import Path

from envsnap.core.context import SnapshotContext
from envsnap.core.index import SnapshotIndex
from envsnap.core.store import SnapshotStore
from envsnap.models.reports import DiffLine, DiffMode, DiffOp, FileDiff
from envsnap.models.snapshots import SnapshotGroup

logger = logging.getLogger(__name__)

SENSITIVE_KEY_PATTERN = re.compile(r"password|secret|key|token|api[_-]?key|auth", re.IGNORECASE)


def line_key(line: str) -> str:
    """The variable name of a ``KEY=value`` line (the whole line if no ``=``)."""
    return line.split("=", 1)[0].strip()


def is_sensitive(line: str) -> bool:
    return bool(SENSITIVE_KEY_PATTERN.search(line_key(line)))


def decode_lines(data: bytes) -> list[str]:
    return data.decode("utf-8", errors="replace").splitlines()


def filter_ignored(lines: Iterable[str], ignore: Iterable[str]) -> list[str]:
    """Drop lines whose key is in *ignore* (exact, case-sensitive match)."""
    ignored = {name.strip() for name in ignore if name.strip()}
    if not ignored:
        return list(lines)
    return [line for line in lines if line_key(line) not in ignored]


def diff_lines(old: list[str], new: list[str]) -> list[DiffLine]:
    """Line-level diff of *old* → *new*.

    Replaced regions are reported as their removed lines followed by the
    added lines.
    """
    result: list[DiffLine] = []
    matcher = difflib.SequenceMatcher(a=old, b=new, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            result.extend(
                DiffLine(op=DiffOp.UNCHANGED, text=line, sensitive=is_sensitive(line))
                for line in old[i1:i2]
            )
            continue
        if tag in ("delete", "replace"):
            result.extend(
                DiffLine(op=DiffOp.REMOVED, text=line, sensitive=is_sensitive(line))
                for line in old[i1:i2]
            )
        if tag in ("insert", "replace"):
            result.extend(
                DiffLine(op=DiffOp.ADDED, text=line, sensitive=is_sensitive(line))
                for line in new[j1:j2]
            )
    return result


class SnapshotDiffer:
    """Resolves groups and diffs them against live files or each other.

    Parameters
    ----------
    context:
        The project context; supplies the store and live file locations.
    """

    def __init__(self, context: SnapshotContext) -> None:
        self._context = context

    @property
    def store(self) -> SnapshotStore:
        return self._context.store

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def resolve_group(self, snapshot_id: str) -> SnapshotGroup:
        """Load a group by id, with or without the ``env-`` prefix.

        Raises ``SnapshotNotFoundError`` or ``CorruptMetadataError``.
        """
        return self.store.read_metadata(snapshot_id)

    def previous_group(
        self,
        group: SnapshotGroup,
        base_name: str,
        index: SnapshotIndex | None = None,
    ) -> SnapshotGroup | None:
        """The snapshot immediately before *group* that also tracked *base_name*."""
        index = index or SnapshotIndex.from_store(self.store)
        return index.previous(group, base_name)

    def _read_live(self, base_name: str) -> list[str]:
        path: Path = self._context.live_path(base_name)
        try:
            return decode_lines(path.read_bytes())
        except FileNotFoundError:
            logger.debug("Live file %s absent, diffing against empty content", path)
            return []

    # ------------------------------------------------------------------
    # Diff
    # ------------------------------------------------------------------

    def diff(
        self,
        snapshot_id: str,
        mode: DiffMode = DiffMode.AGAINST_CURRENT,
        *,
        ignore: Iterable[str] = (),
    ) -> list[FileDiff]:
        """Diff every tracked file of a group.

        A file with no earlier snapshot (``AGAINST_PREVIOUS``) is reported
        with ``no_previous=True``; a file whose stored artifact is gone is
        reported with ``missing_artifact=True``.  Neither aborts the diff.
        """
        group = self.resolve_group(snapshot_id)
        ignore = list(ignore)
        index = SnapshotIndex.from_store(self.store) if mode == DiffMode.AGAINST_PREVIOUS else None

        diffs: list[FileDiff] = []
        for base_name in group.files:
            snap_label = f"{base_name} ({group.id})"
            if not self.store.artifact_exists(group.id, base_name):
                logger.warning("Snapshot artifact missing: %s/%s", group.id, base_name)
                diffs.append(FileDiff(file=base_name, new_label=snap_label, missing_artifact=True))
                continue
            snap_lines = decode_lines(self.store.read_artifact(group.id, base_name))

            if mode == DiffMode.AGAINST_CURRENT:
                old, new = snap_lines, self._read_live(base_name)
                old_label, new_label = snap_label, f"{base_name} (current)"
            else:
                previous = self.previous_group(group, base_name, index)
                if previous is None:
                    diffs.append(FileDiff(file=base_name, new_label=snap_label, no_previous=True))
                    continue
                if not self.store.artifact_exists(previous.id, base_name):
                    logger.warning("Snapshot artifact missing: %s/%s", previous.id, base_name)
                    diffs.append(
                        FileDiff(
                            file=base_name,
                            old_label=f"{base_name} ({previous.id})",
                            new_label=snap_label,
                            missing_artifact=True,
                        )
                    )
                    continue
                old = decode_lines(self.store.read_artifact(previous.id, base_name))
                new = snap_lines
                old_label, new_label = f"{base_name} ({previous.id})", snap_label

            diffs.append(
                FileDiff(
                    file=base_name,
                    old_label=old_label,
                    new_label=new_label,
                    lines=diff_lines(filter_ignored(old, ignore), filter_ignored(new, ignore)),
                )
            )
        return diffs

    def preview_restore(self, snapshot_id: str) -> list[FileDiff]:
        """What restoring *snapshot_id* would change: live file → snapshot."""
        group = self.resolve_group(snapshot_id)
        diffs: list[FileDiff] = []
        for base_name in group.files:
            if not self.store.artifact_exists(group.id, base_name):
                diffs.append(FileDiff(file=base_name, missing_artifact=True))
                continue
            diffs.append(
                FileDiff(
                    file=base_name,
                    old_label=f"{base_name} (current)",
                    new_label=f"{base_name} (snapshot)",
                    lines=diff_lines(
                        self._read_live(base_name),
                        decode_lines(self.store.read_artifact(group.id, base_name)),
                    ),
                )
            )
        return diffs
