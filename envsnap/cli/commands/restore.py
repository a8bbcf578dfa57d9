"""``envsnap revert ID`` and ``envsnap preview ID``: restore a snapshot."""

from __future__ import annotations

import typer
from rich.markup import escape

from envsnap.cli.commands._common import cli_errors, console, load_context
from envsnap.cli.render import print_diffs
from envsnap.core.engine import SnapshotEngine


def revert_cmd(
    ctx: typer.Context,
    snapshot_id: str = typer.Argument(..., help="Snapshot id to restore."),
) -> None:
    """Restore the tracked files from a snapshot."""
    context = load_context(ctx)
    engine = SnapshotEngine(context)
    with cli_errors():
        result = engine.restore(snapshot_id)
        group = context.store.read_metadata(result.snapshot_id)

    for name in result.missing:
        console.print(f"[red]Snapshot file not found:[/red] {escape(name)}")
    if result.restored:
        console.print(
            f"[bold green]Restored files:[/bold green] {escape(', '.join(result.restored))}"
            f" from snapshot: {result.snapshot_id}"
        )
    if group.description:
        console.print(f"Description: {escape(group.description)}")
    if result.missing:
        raise typer.Exit(code=1)


def preview_cmd(
    ctx: typer.Context,
    snapshot_id: str = typer.Argument(..., help="Snapshot id to preview."),
) -> None:
    """Preview the changes restoring a snapshot would make."""
    context = load_context(ctx)
    engine = SnapshotEngine(context)
    with cli_errors():
        diffs = engine.preview_restore(snapshot_id)
    if not print_diffs(console, diffs, show_sensitive=False):
        console.print("No changes would be made by restoring this snapshot group.")
