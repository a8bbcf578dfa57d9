"""Main Typer application: imports and registers all CLI commands.

Entry point: ``envsnap`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from envsnap.cli.commands.archive import export_cmd, import_cmd
from envsnap.cli.commands.diff_cmd import diff_cmd
from envsnap.cli.commands.git_cmd import git_commit_cmd, git_log_cmd, pull_cmd, push_cmd
from envsnap.cli.commands.health import health_cmd
from envsnap.cli.commands.manage import delete_cmd, desc_cmd, prune_cmd, tag_cmd, untag_cmd
from envsnap.cli.commands.plugins import plugin_run_cmd, plugins_cmd
from envsnap.cli.commands.restore import preview_cmd, revert_cmd
from envsnap.cli.commands.snapshot import info_cmd, init_cmd, list_cmd, snapshot_cmd
from envsnap.cli.commands.watch import watch_cmd
from envsnap.config import EnvSnapSettings

app = typer.Typer(
    name="envsnap",
    help="envsnap: snapshot, diff and restore your project's environment files.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


def configure_logging(level: str) -> None:
    """Route log records to stderr through rich, leaving stdout for command output."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    root.setLevel(level.upper())


@app.callback()
def main_callback(
    ctx: typer.Context,
    root: Optional[Path] = typer.Option(
        None, "--root", "-C", help="Project root (defaults to ENVSNAP_PROJECT_ROOT or cwd)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    overrides: dict[str, object] = {}
    if root is not None:
        overrides["project_root"] = root
    if verbose:
        overrides["log_level"] = "DEBUG"
    settings = EnvSnapSettings(**overrides)
    configure_logging(settings.log_level)
    ctx.obj = settings


# Register subcommands
app.command(name="init", help="Initialize envsnap in this project.")(init_cmd)
app.command(name="snapshot", help="Snapshot the tracked environment files.")(snapshot_cmd)
app.command(name="list", help="List snapshot groups.")(list_cmd)
app.command(name="info", help="Show details of one snapshot group.")(info_cmd)
app.command(name="revert", help="Restore tracked files from a snapshot group.")(revert_cmd)
app.command(name="preview", help="Preview what a revert would change.")(preview_cmd)
app.command(name="diff", help="Diff a snapshot against the previous one or the live files.")(diff_cmd)
app.command(name="desc", help="Set or clear a snapshot description.")(desc_cmd)
app.command(name="tag", help="Add a tag to a snapshot group.")(tag_cmd)
app.command(name="untag", help="Remove a tag from a snapshot group.")(untag_cmd)
app.command(name="prune", help="Delete old snapshots, keeping the newest N.")(prune_cmd)
app.command(name="delete", help="Delete one snapshot group.")(delete_cmd)
app.command(name="health", help="Verify snapshot integrity.")(health_cmd)
app.command(name="export", help="Export all snapshots to a zip file.")(export_cmd)
app.command(name="import", help="Import snapshots from a zip file.")(import_cmd)
app.command(name="git-commit", help="Commit snapshot changes to git.")(git_commit_cmd)
app.command(name="git-log", help="Show git history of the snapshot directory.")(git_log_cmd)
app.command(name="push", help="Push snapshot commits to the remote.")(push_cmd)
app.command(name="pull", help="Pull snapshot commits from the remote.")(pull_cmd)
app.command(name="watch", help="Snapshot automatically when tracked files change.")(watch_cmd)
app.command(name="plugins", help="List installed plugins.")(plugins_cmd)
app.command(name="plugin", help="Run a plugin command.")(plugin_run_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
