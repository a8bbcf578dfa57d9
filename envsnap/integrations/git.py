"""Git integration: best-effort repository info and snapshot commits.

All commands run through ``subprocess`` in the project root.  Reading the
current commit is best-effort: outside a repository (or without git on
PATH) ``best_effort_info`` returns ``None`` instead of raising.  Commit,
push and pull raise ``GitCommandError`` so the CLI can report them; the
engine catches those when committing after a snapshot.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from envsnap.models.config import ProjectConfig
from envsnap.models.snapshots import GitInfo, SnapshotGroup

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]

DEFAULT_COMMIT_MESSAGE = "env-snap: snapshot update"


class GitCommandError(RuntimeError):
    """Raised when a git command exits non-zero or cannot be started."""

    def __init__(self, command: Sequence[str] | str, stderr: str) -> None:
        cmd = command if isinstance(command, str) else " ".join(command)
        super().__init__(f"{cmd} failed: {stderr.strip() or 'unknown error'}")
        self.command = cmd
        self.stderr = stderr


def commit_message_for(group: SnapshotGroup) -> str:
    if group.description:
        return f"env-snap: {group.description}"
    return DEFAULT_COMMIT_MESSAGE


def tag_name_for(group: SnapshotGroup) -> str:
    return f"env-snap-{group.short_id}"


class GitIntegration:
    """Runs git against the project that owns the snapshot directory.

    Parameters
    ----------
    root:
        Working directory for every git command.
    snapshot_dir:
        The directory staged by ``commit_snapshots``.
    runner:
        ``subprocess.run``-compatible callable, injectable for tests.
    """

    def __init__(
        self,
        root: Path,
        snapshot_dir: Path,
        *,
        runner: Runner = subprocess.run,
    ) -> None:
        self._root = Path(root)
        self._snapshot_dir = Path(snapshot_dir)
        self._runner = runner

    def _run(self, *args: str) -> str:
        command = ["git", *args]
        try:
            result = self._runner(
                command,
                cwd=self._root,
                capture_output=True,
                text=True,
                check=False,
            )
        except (subprocess.SubprocessError, OSError) as exc:
            raise GitCommandError(command, str(exc)) from exc
        if result.returncode != 0:
            raise GitCommandError(command, result.stderr or result.stdout or "")
        return (result.stdout or "").strip()

    def _run_shell(self, command: str) -> None:
        try:
            result = self._runner(
                command,
                cwd=self._root,
                shell=True,
                capture_output=True,
                text=True,
                check=False,
            )
        except (subprocess.SubprocessError, OSError) as exc:
            raise GitCommandError(command, str(exc)) from exc
        if result.returncode != 0:
            raise GitCommandError(command, result.stderr or "")

    # ------------------------------------------------------------------
    # Best-effort info
    # ------------------------------------------------------------------

    def best_effort_info(self) -> GitInfo | None:
        """Current commit, branch and origin URL, or ``None`` outside a repo."""
        try:
            commit = self._run("rev-parse", "HEAD")
        except GitCommandError as exc:
            logger.debug("No git info available: %s", exc)
            return None
        if not commit:
            return None

        branch: str | None
        try:
            branch = self._run("rev-parse", "--abbrev-ref", "HEAD") or None
        except GitCommandError:
            branch = None

        remote: str | None
        try:
            remote = self._run("config", "--get", "remote.origin.url") or None
        except GitCommandError:
            remote = None

        return GitInfo(hash=commit, branch=branch, remote=remote)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _snapshot_pathspec(self) -> str:
        try:
            return str(self._snapshot_dir.relative_to(self._root))
        except ValueError:
            return str(self._snapshot_dir)

    def commit_snapshots(
        self,
        message: str = DEFAULT_COMMIT_MESSAGE,
        *,
        branch: str | None = None,
        tag_name: str | None = None,
        push: bool = False,
        commit_hooks: Sequence[str] = (),
    ) -> bool:
        """Stage and commit the snapshot directory.

        Returns ``False`` when there was nothing to commit.  Tagging,
        pushing and commit hooks only run after a successful commit.
        """
        if branch:
            self._run("checkout", branch)
        self._run("add", self._snapshot_pathspec())
        try:
            self._run("commit", "-m", message)
        except GitCommandError as exc:
            if "nothing to commit" in exc.stderr or "nothing added to commit" in exc.stderr:
                logger.info("No snapshot changes to commit")
                return False
            raise
        logger.info("Committed %s to git", self._snapshot_pathspec())

        if tag_name:
            self._run("tag", tag_name)
            logger.info("Tagged commit with %s", tag_name)
        if push:
            self._run("push")
            if tag_name:
                self._run("push", "--tags")
            logger.info("Pushed snapshot commit to remote")
        for hook in commit_hooks:
            self._run_shell(hook)
            logger.info("Ran commit hook: %s", hook)
        return True

    def post_snapshot(self, group: SnapshotGroup, config: ProjectConfig) -> bool:
        """Commit a freshly created group according to the project config."""
        return self.commit_snapshots(
            commit_message_for(group),
            branch=config.branch,
            tag_name=tag_name_for(group) if config.tag else None,
            push=config.auto_push,
            commit_hooks=config.commit_hooks,
        )

    def log(self) -> str:
        """``git log`` restricted to the snapshot directory."""
        return self._run("log", "--", self._snapshot_pathspec())

    def push(self) -> None:
        self._run("push")
        self._run("push", "--tags")

    def pull(self) -> None:
        self._run("pull")
        self._run("fetch", "--tags")
