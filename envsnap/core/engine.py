"""Snapshot engine: creates snapshot groups and restores them.

``create_snapshot`` runs the capture protocol:

1. resolve the tracked files (``ConfigurationError`` if there are none),
2. fail with ``MissingSourceFilesError`` if none of them exist,
3. allocate a fresh id,
4. capture every file concurrently (read, hash, copy into the store),
   joining before anything else happens,
5. gather best-effort identity and git info,
6. write the metadata record, the group's single source of truth,
7. run post-snapshot integrations: retention, notifications, git
   commit, plugin hooks.

Per-file failures in step 4 are recorded as failed ``FileStat`` entries.
Failures in step 7 are logged and never undo or fail the snapshot.
"""

from __future__ import annotations

import getpass
import logging
import platform
import shutil
import time
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path

from envsnap.config import ConfigurationError
from envsnap.core.context import SnapshotContext
from envsnap.core.differ import SnapshotDiffer
from envsnap.core.hasher import sha256_hex
from envsnap.core.index import SnapshotIndex
from envsnap.core.lifecycle import SnapshotLifecycle
from envsnap.core.store import GroupPredicate, SnapshotStore, validate_base_name
from envsnap.integrations.git import GitCommandError, GitIntegration
from envsnap.models.events import SnapshotEvent
from envsnap.models.reports import FileDiff, RestoreResult
from envsnap.models.snapshots import (
    SNAPSHOT_ID_PREFIX,
    CaptureIdentity,
    CaptureStats,
    FileCaptureStatus,
    FileStat,
    SnapshotGroup,
)
from envsnap.notify.dispatcher import (
    NotificationDispatcher,
    NotificationDispatchError,
    build_notifiers,
)
from envsnap.plugins.registry import PluginHookName, PluginRegistry

logger = logging.getLogger(__name__)

_MAX_ID_SUFFIX = 99


class MissingSourceFilesError(RuntimeError):
    """Raised when none of the tracked files exist at capture time."""

    def __init__(self, missing: Sequence[Path]) -> None:
        self.missing = list(missing)
        names = ", ".join(str(p) for p in self.missing)
        super().__init__(f"Tracked files not found: {names}")


def best_effort_identity() -> CaptureIdentity:
    """Current user and hostname; either may be ``None``."""
    try:
        user: str | None = getpass.getuser()
    except (KeyError, OSError, ImportError):
        user = None
    hostname = platform.node() or None
    return CaptureIdentity(user=user, hostname=hostname)


def format_snapshot_id(moment: datetime) -> str:
    """``env-YYYY-MM-DDTHH-MM-SS-ffffffZ`` for a UTC moment."""
    moment = moment.astimezone(timezone.utc)
    return f"{SNAPSHOT_ID_PREFIX}{moment:%Y-%m-%dT%H-%M-%S-%fZ}"


class SnapshotEngine:
    """Creates, restores and lists snapshot groups for one project.

    Parameters
    ----------
    context:
        The resolved project context.
    dispatcher:
        Optional notification dispatcher, called after each snapshot.
    git:
        Optional git integration.  Supplies best-effort git info and,
        when the project config enables it, commits after each snapshot.
    plugins:
        Optional loaded plugin registry whose ``post-snapshot`` hooks run
        after each snapshot.
    identity_provider:
        Returns the capturing user/host; injectable for tests.
    clock:
        Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        context: SnapshotContext,
        *,
        dispatcher: NotificationDispatcher | None = None,
        git: GitIntegration | None = None,
        plugins: PluginRegistry | None = None,
        identity_provider: Callable[[], CaptureIdentity] = best_effort_identity,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._context = context
        self._dispatcher = dispatcher
        self._git = git
        self._plugins = plugins
        self._identity_provider = identity_provider
        self._clock = clock

    @classmethod
    def from_context(cls, context: SnapshotContext) -> SnapshotEngine:
        """Wire an engine with the integrations declared in the project config."""
        dispatcher = NotificationDispatcher(
            build_notifiers(
                context.config.hooks,
                cwd=context.root,
                timeout=context.settings.webhook_timeout_seconds,
            )
        )
        plugins = PluginRegistry(context.plugins_directory())
        plugins.load()
        git = GitIntegration(context.root, context.snapshot_directory())
        return cls(context, dispatcher=dispatcher, git=git, plugins=plugins)

    @property
    def context(self) -> SnapshotContext:
        return self._context

    @property
    def store(self) -> SnapshotStore:
        return self._context.store

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_snapshot(
        self,
        description: str | None = None,
        tags: Iterable[str] | None = None,
        tracked_files: Sequence[str | Path] | None = None,
    ) -> SnapshotGroup:
        """Capture every tracked file into a new snapshot group.

        Raises
        ------
        ConfigurationError
            No tracked files, or two tracked files share a base name.
        MissingSourceFilesError
            None of the tracked files exist.
        """
        started = time.perf_counter()

        files = self._resolve_tracked_files(tracked_files)
        missing = [path for path in files if not path.is_file()]
        if len(missing) == len(files):
            raise MissingSourceFilesError(missing)
        for path in missing:
            logger.error("Tracked file not found: %s", path)

        created_at = self._clock()
        group_id = self._allocate_id(created_at)

        stats_by_name = {
            path.name: FileStat(
                name=path.name,
                status=FileCaptureStatus.FAILED,
                error="file not found",
            )
            for path in missing
        }
        present = [path for path in files if path not in missing]
        workers = max(1, min(self._context.settings.capture_workers, len(present)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="envsnap-capture") as pool:
            for stat in pool.map(lambda p: self._capture_file(group_id, p), present):
                stats_by_name[stat.name] = stat
        file_stats = [stats_by_name[path.name] for path in files]

        identity = self._identity_provider()
        git_info = self._git.best_effort_info() if self._git is not None else None

        group = SnapshotGroup(
            id=group_id,
            description=description or None,
            tags=_unique(tags or ()),
            files=[path.name for path in files],
            captured_by=identity,
            git=git_info,
            created_at=created_at,
            stats=CaptureStats(
                total_size=sum(s.size or 0 for s in file_stats if s.captured),
                capture_duration_ms=round((time.perf_counter() - started) * 1000, 3),
                files=file_stats,
            ),
        )
        self.store.write_metadata(group)

        failed = group.stats.failed_files
        if failed:
            logger.warning(
                "Snapshot %s created with %d/%d files failed: %s",
                group.id,
                len(failed),
                len(file_stats),
                ", ".join(s.name for s in failed),
            )
        else:
            logger.info("Snapshot %s created for %s", group.id, ", ".join(group.files))

        self._after_snapshot(group)
        return group

    def _resolve_tracked_files(self, tracked_files: Sequence[str | Path] | None) -> list[Path]:
        if tracked_files is None:
            files = self._context.tracked_files()
        else:
            files = [self._context.resolve(f) for f in tracked_files]
        if not files:
            raise ConfigurationError("No tracked files configured")

        seen: dict[str, Path] = {}
        for path in files:
            try:
                validate_base_name(path.name)
            except ValueError as exc:
                raise ConfigurationError(str(exc)) from exc
            if path.name in seen:
                raise ConfigurationError(
                    f"Tracked files {seen[path.name]} and {path} share the name {path.name!r}"
                )
            seen[path.name] = path
        return files

    def _allocate_id(self, created_at: datetime) -> str:
        base = format_snapshot_id(created_at)
        candidate = base
        suffix = 0
        while self.store.group_id_in_use(candidate):
            suffix += 1
            if suffix > _MAX_ID_SUFFIX:
                raise RuntimeError(f"Cannot allocate a unique snapshot id near {base}")
            candidate = f"{base}-{suffix:02d}"
        return candidate

    def _capture_file(self, group_id: str, path: Path) -> FileStat:
        try:
            data = path.read_bytes()
            self.store.write_artifact(group_id, path.name, data)
        except OSError as exc:
            logger.error("Failed to capture %s: %s", path, exc)
            return FileStat(name=path.name, status=FileCaptureStatus.FAILED, error=str(exc))
        return FileStat(name=path.name, size=len(data), hash=sha256_hex(data))

    def _after_snapshot(self, group: SnapshotGroup) -> None:
        config = self._context.config

        max_snapshots = self._context.max_snapshots()
        if max_snapshots is not None:
            try:
                SnapshotLifecycle(self.store).prune(max_snapshots)
            except Exception as exc:  # noqa: BLE001
                logger.error("Retention sweep after %s failed: %s", group.id, exc)

        event = SnapshotEvent.snapshot_created(group)
        if self._dispatcher is not None:
            try:
                self._dispatcher.dispatch(event)
            except NotificationDispatchError as exc:
                logger.error("%s", exc)

        if self._git is not None and config.git_enabled:
            try:
                self._git.post_snapshot(group, config)
            except GitCommandError as exc:
                logger.error("Git integration failed: %s", exc)

        if self._plugins is not None:
            self._plugins.run_hook(PluginHookName.POST_SNAPSHOT, event)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def list_groups(self, predicate: GroupPredicate | None = None) -> list[SnapshotGroup]:
        """Stored groups in chronological order, optionally filtered."""
        return SnapshotIndex(self.store.list_groups(predicate)).groups

    def preview_restore(self, snapshot_id: str) -> list[FileDiff]:
        """What ``restore`` would change, without writing anything."""
        return SnapshotDiffer(self._context).preview_restore(snapshot_id)

    def restore(self, snapshot_id: str) -> RestoreResult:
        """Copy every artifact of a group back over its working file.

        Artifacts that are missing from the store are reported in
        ``RestoreResult.missing``; the remaining files are still restored.
        """
        group = self.store.read_metadata(snapshot_id)
        restored: list[str] = []
        missing: list[str] = []
        for base_name in group.files:
            source = self.store.artifact_path(group.id, base_name)
            if not source.exists():
                logger.error("Snapshot artifact not found: %s", source.name)
                missing.append(base_name)
                continue
            target = self._context.live_path(base_name)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
            restored.append(base_name)
        logger.info("Restored %s from %s", ", ".join(restored) or "nothing", group.id)
        return RestoreResult(snapshot_id=group.id, restored=restored, missing=missing)


def _unique(values: Iterable[str]) -> list[str]:
    result: list[str] = []
    for value in values:
        if value and value not in result:
            result.append(value)
    return result
