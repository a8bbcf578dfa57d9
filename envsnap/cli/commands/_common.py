"""Shared helpers for CLI commands: context loading and error reporting."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console
from rich.markup import escape

from envsnap.config import ConfigurationError, EnvSnapSettings
from envsnap.core.context import SnapshotContext
from envsnap.core.engine import MissingSourceFilesError
from envsnap.core.store import CorruptMetadataError, SnapshotNotFoundError
from envsnap.integrations.archive import ArchiveError
from envsnap.integrations.git import GitCommandError
from envsnap.plugins.registry import PluginError

console = Console()

_REPORTED_ERRORS = (
    ConfigurationError,
    MissingSourceFilesError,
    SnapshotNotFoundError,
    CorruptMetadataError,
    ArchiveError,
    GitCommandError,
    PluginError,
    ValueError,
)


def settings_from(ctx: typer.Context) -> EnvSnapSettings:
    settings = ctx.obj if isinstance(ctx.obj, EnvSnapSettings) else None
    return settings or EnvSnapSettings()


@contextmanager
def cli_errors() -> Iterator[None]:
    """Report known errors in red and exit with code 1."""
    try:
        yield
    except _REPORTED_ERRORS as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        if isinstance(exc, MissingSourceFilesError):
            for path in exc.missing:
                console.print(f"  [red]missing[/red] {escape(str(path))}")
        raise typer.Exit(code=1) from exc


def load_context(ctx: typer.Context) -> SnapshotContext:
    """Build the project context from the settings stored by the app callback."""
    with cli_errors():
        return SnapshotContext.from_settings(settings_from(ctx))
