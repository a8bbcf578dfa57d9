"""On-disk snapshot store.

Storage layout (flat, one directory per project)::

    {base_path}/{group_id}.json              metadata record
    {base_path}/{group_id}__{base_name}      raw artifact copy

Group ids never contain the ``__`` separator, so splitting an artifact
name on its first ``__`` recovers ``(group_id, base_name)`` exactly, even
for base names that themselves contain ``__``.

The store guarantees that a single artifact or metadata write is
all-or-nothing (temp file + ``os.replace``).  Coordinating the writes of
an entire group is the engine's job.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import NamedTuple

from pydantic import ValidationError

from envsnap.core.cache import MetadataCache
from envsnap.models.snapshots import (
    SNAPSHOT_ID_PREFIX,
    SnapshotGroup,
    normalize_snapshot_id,
    validate_base_name,
)

logger = logging.getLogger(__name__)

ARTIFACT_SEPARATOR = "__"
METADATA_SUFFIX = ".json"

GroupPredicate = Callable[[SnapshotGroup], bool]


class SnapshotNotFoundError(RuntimeError):
    """Raised when no metadata record exists for a snapshot id."""

    def __init__(self, snapshot_id: str) -> None:
        super().__init__(f"Snapshot not found: {snapshot_id}")
        self.snapshot_id = snapshot_id


class CorruptMetadataError(RuntimeError):
    """Raised when a metadata record exists but cannot be parsed."""

    def __init__(self, snapshot_id: str, reason: str) -> None:
        super().__init__(f"Corrupt metadata for snapshot {snapshot_id}: {reason}")
        self.snapshot_id = snapshot_id
        self.reason = reason


class ArtifactKey(NamedTuple):
    group_id: str
    base_name: str


def artifact_name(group_id: str, base_name: str) -> str:
    """Compute the artifact file name for ``(group_id, base_name)``."""
    if ARTIFACT_SEPARATOR in group_id:
        raise ValueError(f"Group id must not contain {ARTIFACT_SEPARATOR!r}: {group_id!r}")
    return f"{group_id}{ARTIFACT_SEPARATOR}{validate_base_name(base_name)}"


def parse_artifact_name(name: str) -> ArtifactKey | None:
    """Recover ``(group_id, base_name)`` from an artifact file name.

    Returns ``None`` for names that are not snapshot artifacts.
    """
    if not name.startswith(SNAPSHOT_ID_PREFIX):
        return None
    group_id, sep, base_name = name.partition(ARTIFACT_SEPARATOR)
    if not sep or not base_name:
        return None
    return ArtifactKey(group_id, base_name)


def has_tag(tag: str) -> GroupPredicate:
    """Predicate: the group carries exactly *tag*."""
    return lambda group: tag in group.tags


def tracks_file(base_name: str) -> GroupPredicate:
    """Predicate: the group captured *base_name*."""
    return lambda group: base_name in group.files


class SnapshotStore:
    """Flat-directory store of snapshot metadata and artifacts.

    Parameters
    ----------
    base_path:
        The snapshot directory.  Created if it does not exist.
    cache:
        Optional read-through cache for metadata records.
    """

    def __init__(self, base_path: Path, cache: MetadataCache | None = None) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)
        self._cache = cache

    @property
    def base_path(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Low-level I/O
    # ------------------------------------------------------------------

    def _atomic_write(self, path: Path, data: bytes) -> None:
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, path)
        finally:
            if tmp.exists():
                tmp.unlink()

    def metadata_path(self, group_id: str) -> Path:
        return self._base / f"{normalize_snapshot_id(group_id)}{METADATA_SUFFIX}"

    def artifact_path(self, group_id: str, base_name: str) -> Path:
        return self._base / artifact_name(normalize_snapshot_id(group_id), base_name)

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def write_artifact(self, group_id: str, base_name: str, data: bytes) -> Path:
        """Persist the raw bytes of one tracked file for a group."""
        path = self.artifact_path(group_id, base_name)
        self._atomic_write(path, data)
        logger.debug("Wrote artifact %s (%d bytes)", path.name, len(data))
        return path

    def read_artifact(self, group_id: str, base_name: str) -> bytes:
        path = self.artifact_path(group_id, base_name)
        if not path.exists():
            raise FileNotFoundError(f"Snapshot artifact not found: {path.name}")
        return path.read_bytes()

    def artifact_exists(self, group_id: str, base_name: str) -> bool:
        return self.artifact_path(group_id, base_name).exists()

    def delete_artifact(self, group_id: str, base_name: str) -> bool:
        """Remove one artifact.  Returns ``False`` if it was already gone."""
        path = self.artifact_path(group_id, base_name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.debug("Deleted artifact %s", path.name)
        return True

    def group_id_in_use(self, group_id: str) -> bool:
        """True if a metadata record or any artifact already uses *group_id*."""
        group_id = normalize_snapshot_id(group_id)
        if self.metadata_exists(group_id):
            return True
        return any(self._base.glob(f"{group_id}{ARTIFACT_SEPARATOR}*"))

    def list_artifacts(self) -> list[ArtifactKey]:
        """All artifacts in the directory, sorted by name."""
        keys: list[ArtifactKey] = []
        for path in sorted(self._base.iterdir()):
            if not path.is_file():
                continue
            key = parse_artifact_name(path.name)
            if key is not None:
                keys.append(key)
        return keys

    def iter_artifacts_for(self, base_name: str) -> Iterator[ArtifactKey]:
        """Artifacts of every group that stored *base_name*."""
        for key in self.list_artifacts():
            if key.base_name == base_name:
                yield key

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def write_metadata(self, group: SnapshotGroup) -> Path:
        """Persist (or overwrite) a group's metadata record."""
        path = self.metadata_path(group.id)
        payload = group.model_dump_json(indent=2).encode("utf-8")
        self._atomic_write(path, payload)
        if self._cache is not None:
            self._cache.put(group)
        logger.debug("Wrote metadata %s", path.name)
        return path

    def read_metadata(self, group_id: str) -> SnapshotGroup:
        """Load a group's metadata record.

        Raises
        ------
        SnapshotNotFoundError
            No record exists for *group_id*.
        CorruptMetadataError
            The record is not valid JSON or does not match the schema.
        """
        group_id = normalize_snapshot_id(group_id)
        if self._cache is not None:
            cached = self._cache.get(group_id)
            if cached is not None:
                return cached

        path = self.metadata_path(group_id)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            raise SnapshotNotFoundError(group_id) from None

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CorruptMetadataError(group_id, f"invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise CorruptMetadataError(group_id, "record is not a JSON object")

        # Records predating stored ids carry only the file stem.
        data.setdefault("id", group_id)
        try:
            group = SnapshotGroup.model_validate(data)
        except ValidationError as exc:
            raise CorruptMetadataError(group_id, str(exc)) from exc

        if group.id != group_id:
            raise CorruptMetadataError(
                group_id, f"record id {group.id!r} does not match file name"
            )

        if self._cache is not None:
            self._cache.put(group)
        return group

    def metadata_exists(self, group_id: str) -> bool:
        return self.metadata_path(group_id).exists()

    def delete_metadata(self, group_id: str) -> bool:
        """Remove a metadata record.  Returns ``False`` if it was already gone."""
        group_id = normalize_snapshot_id(group_id)
        if self._cache is not None:
            self._cache.invalidate(group_id)
        try:
            self.metadata_path(group_id).unlink()
        except FileNotFoundError:
            return False
        logger.debug("Deleted metadata for %s", group_id)
        return True

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def list_group_ids(self) -> list[str]:
        """Ids of every group that has a metadata record, sorted."""
        ids: list[str] = []
        for path in self._base.glob(f"{SNAPSHOT_ID_PREFIX}*{METADATA_SUFFIX}"):
            if ARTIFACT_SEPARATOR in path.name or not path.is_file():
                continue
            ids.append(path.name.removesuffix(METADATA_SUFFIX))
        return sorted(ids)

    def list_groups(
        self,
        predicate: GroupPredicate | None = None,
        *,
        strict: bool = False,
    ) -> list[SnapshotGroup]:
        """Load every readable group, optionally filtered by *predicate*.

        Corrupt records are skipped with a warning unless *strict* is set,
        in which case the ``CorruptMetadataError`` propagates.
        """
        groups: list[SnapshotGroup] = []
        for group_id in self.list_group_ids():
            try:
                group = self.read_metadata(group_id)
            except CorruptMetadataError as exc:
                if strict:
                    raise
                logger.warning("Skipping unreadable snapshot %s: %s", group_id, exc.reason)
                continue
            if predicate is None or predicate(group):
                groups.append(group)
        return groups
