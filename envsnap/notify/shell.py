"""Shell hook notifier: runs a configured command after a snapshot."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from pathlib import Path

from envsnap.models.events import SnapshotEvent
from envsnap.notify._formatting import substitute

logger = logging.getLogger(__name__)


class ShellHookError(RuntimeError):
    """Raised when a shell hook exits non-zero."""


class ShellHookNotifier:
    """Runs a shell command with placeholders substituted.

    Parameters
    ----------
    command:
        The command template, e.g. ``"echo $SNAPSHOT_ID >> snaps.log"``.
    cwd:
        Working directory for the command.
    runner:
        ``subprocess.run``-compatible callable, injectable for tests.
    """

    def __init__(
        self,
        command: str,
        cwd: Path | None = None,
        *,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self._command = command
        self._cwd = cwd
        self._runner = runner

    @property
    def notifier_name(self) -> str:
        return "shell"

    def render(self, event: SnapshotEvent) -> str:
        return substitute(self._command, event)

    def notify(self, event: SnapshotEvent) -> None:
        command = self.render(event)
        result = self._runner(
            command,
            shell=True,
            cwd=self._cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise ShellHookError(
                f"Shell hook exited {result.returncode}: {(result.stderr or '').strip()}"
            )
        logger.debug("Shell hook ran for %s: %s", event.snapshot_id, command)
