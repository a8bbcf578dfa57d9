"""``envsnap desc | tag | untag | prune | delete``: edit and remove snapshots."""

from __future__ import annotations

import typer
from rich.markup import escape

from envsnap.cli.commands._common import cli_errors, console, load_context
from envsnap.cli.render import print_prune_result
from envsnap.core.lifecycle import DEFAULT_KEEP, SnapshotLifecycle
from envsnap.models.reports import TagChange

_TAG_MESSAGES: dict[TagChange, str] = {
    TagChange.ADDED: "[green]Added tag[/green] '{tag}' to {id}",
    TagChange.ALREADY_PRESENT: "[dim]Tag '{tag}' already present on {id}[/dim]",
    TagChange.REMOVED: "[green]Removed tag[/green] '{tag}' from {id}",
    TagChange.NOT_PRESENT: "[dim]Tag '{tag}' not present on {id}[/dim]",
}


def desc_cmd(
    ctx: typer.Context,
    snapshot_id: str = typer.Argument(..., help="Snapshot id."),
    description: str = typer.Argument(..., help="New description (empty string clears it)."),
) -> None:
    """Add or edit the description of a snapshot."""
    lifecycle = SnapshotLifecycle(load_context(ctx).store)
    with cli_errors():
        group = lifecycle.set_description(snapshot_id, description)
    console.print(f"Description set for snapshot {group.id}: {escape(group.description or '')}")


def tag_cmd(
    ctx: typer.Context,
    snapshot_id: str = typer.Argument(..., help="Snapshot id."),
    tag: str = typer.Argument(..., help="Tag to add."),
) -> None:
    """Add a tag to a snapshot."""
    lifecycle = SnapshotLifecycle(load_context(ctx).store)
    with cli_errors():
        change = lifecycle.add_tag(snapshot_id, tag)
    console.print(_TAG_MESSAGES[change].format(tag=escape(tag), id=snapshot_id))


def untag_cmd(
    ctx: typer.Context,
    snapshot_id: str = typer.Argument(..., help="Snapshot id."),
    tag: str = typer.Argument(..., help="Tag to remove."),
) -> None:
    """Remove a tag from a snapshot."""
    lifecycle = SnapshotLifecycle(load_context(ctx).store)
    with cli_errors():
        change = lifecycle.remove_tag(snapshot_id, tag)
    console.print(_TAG_MESSAGES[change].format(tag=escape(tag), id=snapshot_id))


def prune_cmd(
    ctx: typer.Context,
    keep: int = typer.Argument(DEFAULT_KEEP, min=0, help="Number of newest snapshots to keep."),
) -> None:
    """Delete old snapshots, keeping only the latest KEEP."""
    lifecycle = SnapshotLifecycle(load_context(ctx).store)
    with cli_errors():
        result = lifecycle.prune(keep)
    print_prune_result(console, result)


def delete_cmd(
    ctx: typer.Context,
    snapshot_id: str = typer.Argument(..., help="Snapshot id to delete."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete one snapshot and all of its files."""
    context = load_context(ctx)
    with cli_errors():
        group = context.store.read_metadata(snapshot_id)
    if not yes:
        typer.confirm(f"Delete snapshot {group.id}?", abort=True)
    removed = SnapshotLifecycle(context.store).delete(group.id, group)
    console.print(f"[red]Deleted snapshot:[/red] {group.id} ({len(removed)} files)")
