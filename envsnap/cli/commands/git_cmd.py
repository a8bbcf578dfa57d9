"""``envsnap git-commit | git-log | push | pull``: snapshot directory under git."""

from __future__ import annotations

import typer
from rich.markup import escape

from envsnap.cli.commands._common import cli_errors, console, load_context
from envsnap.core.context import SnapshotContext
from envsnap.integrations.git import DEFAULT_COMMIT_MESSAGE, GitIntegration


def _git(context: SnapshotContext) -> GitIntegration:
    return GitIntegration(context.root, context.snapshot_directory())


def git_commit_cmd(
    ctx: typer.Context,
    message: str = typer.Option(DEFAULT_COMMIT_MESSAGE, "--message", "-m", help="Commit message."),
) -> None:
    """Commit all snapshot changes to git."""
    context = load_context(ctx)
    with cli_errors():
        committed = _git(context).commit_snapshots(message)
    if committed:
        console.print(f"Committed {escape(context.config.snapshot_dir)} to git.")
    else:
        console.print("No changes to commit.")


def git_log_cmd(ctx: typer.Context) -> None:
    """Show the git log of the snapshot directory."""
    context = load_context(ctx)
    with cli_errors():
        output = _git(context).log()
    console.print(escape(output) if output else "[dim]No commits touch the snapshot directory.[/dim]")


def push_cmd(ctx: typer.Context) -> None:
    """Push snapshot commits and tags to the remote."""
    context = load_context(ctx)
    with cli_errors():
        _git(context).push()
    console.print("Pushed snapshot commits and tags to remote.")


def pull_cmd(ctx: typer.Context) -> None:
    """Pull snapshot commits and tags from the remote."""
    context = load_context(ctx)
    with cli_errors():
        _git(context).pull()
    console.print("Pulled snapshot commits and tags from remote.")
