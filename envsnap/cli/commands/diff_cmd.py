"""``envsnap diff ID``: diff a snapshot against the previous one or the live files."""

from __future__ import annotations

from typing import Optional

import typer

from envsnap.cli.commands._common import cli_errors, console, load_context
from envsnap.cli.render import print_diffs
from envsnap.core.differ import SnapshotDiffer
from envsnap.models.reports import DiffMode


def diff_cmd(
    ctx: typer.Context,
    snapshot_id: str = typer.Argument(..., help="Snapshot id to diff."),
    current: bool = typer.Option(
        False,
        "--current",
        "-c",
        help="Compare with the current files instead of the previous snapshot.",
    ),
    ignore: Optional[list[str]] = typer.Option(
        None,
        "--ignore",
        "-i",
        help="Variable name to leave out of the diff (repeatable, or comma-separated).",
    ),
) -> None:
    """Show line-level changes for every file in a snapshot."""
    context = load_context(ctx)
    ignored = [name for value in ignore or () for name in value.split(",") if name.strip()]
    mode = DiffMode.AGAINST_CURRENT if current else DiffMode.AGAINST_PREVIOUS

    with cli_errors():
        diffs = SnapshotDiffer(context).diff(snapshot_id, mode, ignore=ignored)
    print_diffs(console, diffs, show_sensitive=not ignored)
