"""Tag, description and retention management for snapshot groups.

Edits are read-modify-write on the metadata record: the stored group is
loaded, a new frozen instance is built with ``model_copy`` and written
back.  Retention deletes whole groups, oldest first, in the index order
``(created_at, id)``.
"""

from __future__ import annotations

import logging

from envsnap.core.index import SnapshotIndex
from envsnap.core.store import SnapshotStore
from envsnap.models.reports import PruneResult, TagChange
from envsnap.models.snapshots import SnapshotGroup, normalize_snapshot_id

logger = logging.getLogger(__name__)

DEFAULT_KEEP = 5


class SnapshotLifecycle:
    """Mutates tags and descriptions; deletes groups.

    Parameters
    ----------
    store:
        The snapshot store to operate on.
    """

    def __init__(self, store: SnapshotStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Tags and description
    # ------------------------------------------------------------------

    def add_tag(self, snapshot_id: str, tag: str) -> TagChange:
        """Add *tag* to a group.  Adding an existing tag is a reported no-op."""
        tag = _check_tag(tag)
        group = self._store.read_metadata(snapshot_id)
        if tag in group.tags:
            return TagChange.ALREADY_PRESENT
        self._store.write_metadata(group.model_copy(update={"tags": [*group.tags, tag]}))
        logger.info("Tagged %s with %r", group.id, tag)
        return TagChange.ADDED

    def remove_tag(self, snapshot_id: str, tag: str) -> TagChange:
        """Remove *tag* from a group.  Removing an absent tag is a reported no-op."""
        group = self._store.read_metadata(snapshot_id)
        if tag not in group.tags:
            return TagChange.NOT_PRESENT
        tags = [t for t in group.tags if t != tag]
        self._store.write_metadata(group.model_copy(update={"tags": tags}))
        logger.info("Removed tag %r from %s", tag, group.id)
        return TagChange.REMOVED

    def set_description(self, snapshot_id: str, description: str | None) -> SnapshotGroup:
        """Replace a group's description; an empty string clears it."""
        group = self._store.read_metadata(snapshot_id)
        updated = group.model_copy(update={"description": description or None})
        self._store.write_metadata(updated)
        logger.info("Description set for %s", group.id)
        return updated

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete(self, snapshot_id: str, group: SnapshotGroup | None = None) -> list[str]:
        """Delete a group's metadata and every artifact stored under its id.

        Pieces that are already gone are tolerated.  Returns the names of
        the files removed.
        """
        group_id = normalize_snapshot_id(snapshot_id)
        removed: list[str] = []

        names = set(group.files) if group is not None else set()
        names.update(key.base_name for key in self._store.list_artifacts() if key.group_id == group_id)
        for base_name in sorted(names):
            if self._store.delete_artifact(group_id, base_name):
                removed.append(self._store.artifact_path(group_id, base_name).name)

        if self._store.delete_metadata(group_id):
            removed.append(self._store.metadata_path(group_id).name)
        else:
            logger.debug("No metadata record for %s during delete", group_id)

        logger.info("Deleted snapshot %s (%d files)", group_id, len(removed))
        return removed

    def prune(self, keep: int = DEFAULT_KEEP) -> PruneResult:
        """Delete the oldest groups so that at most *keep* remain."""
        if keep < 0:
            raise ValueError("keep must be >= 0")

        index = SnapshotIndex.from_store(self._store)
        total = len(index)
        if total <= keep:
            logger.info("Nothing to prune: %d snapshots, keeping %d", total, keep)
            return PruneResult(keep=keep, total_before=total, kept=index.ids)

        doomed = index.oldest(total - keep)
        deleted: list[str] = []
        for group in doomed:
            self.delete(group.id, group)
            deleted.append(group.id)

        kept = [g.id for g in index.newest(keep)]
        logger.info("Pruned %d snapshots, kept %d", len(deleted), len(kept))
        return PruneResult(keep=keep, total_before=total, deleted=deleted, kept=kept)


def _check_tag(tag: str) -> str:
    if not tag or not tag.strip():
        raise ValueError("Tag must be a non-empty string")
    return tag
