"""``envsnap init | snapshot | list | info``: create and inspect snapshots."""

from __future__ import annotations

import json
from typing import Optional

import typer
from rich.markup import escape

from envsnap.cli.commands._common import cli_errors, console, load_context
from envsnap.cli.render import group_panel, group_table
from envsnap.config import DEFAULT_CONFIG_FILE
from envsnap.core.engine import SnapshotEngine
from envsnap.core.store import has_tag, tracks_file
from envsnap.models.config import ProjectConfig


def init_cmd(
    ctx: typer.Context,
    write_config: bool = typer.Option(
        False,
        "--write-config",
        help=f"Also write a default {DEFAULT_CONFIG_FILE} if none exists.",
    ),
) -> None:
    """Initialize envsnap in the project: create the snapshot directory."""
    context = load_context(ctx)
    directory = context.store.base_path

    if write_config:
        config_path = context.root / context.settings.config_file
        if config_path.exists():
            console.print(f"[dim]{escape(str(config_path))} already exists, left untouched.[/dim]")
        else:
            defaults = ProjectConfig().model_dump(by_alias=True, exclude_none=True)
            defaults["files"] = ProjectConfig().tracked_file_names
            config_path.write_text(json.dumps(defaults, indent=2) + "\n", encoding="utf-8")
            console.print(f"Wrote {escape(str(config_path))}")

    console.print(f"Initialized envsnap. Snapshots will be stored in {escape(str(directory))}")


def snapshot_cmd(
    ctx: typer.Context,
    description: Optional[str] = typer.Option(
        None, "--desc", "-d", help="Description for this snapshot."
    ),
    tags: Optional[list[str]] = typer.Option(
        None, "--tag", "-t", help="Tag to attach (repeatable)."
    ),
) -> None:
    """Snapshot the tracked files now."""
    context = load_context(ctx)
    with cli_errors():
        engine = SnapshotEngine.from_context(context)
        group = engine.create_snapshot(description=description, tags=tags)

    console.print(
        f"[bold green]Snapshot created:[/bold green] {group.id} for files: "
        f"{escape(', '.join(group.files))}"
    )
    if group.description:
        console.print(f"Description: {escape(group.description)}")
    for stat in group.stats.failed_files:
        console.print(f"[yellow]Not captured:[/yellow] {escape(stat.name)} ({escape(stat.error or '?')})")


def list_cmd(
    ctx: typer.Context,
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Only snapshots with this tag."),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Only snapshots of this file."),
) -> None:
    """List snapshots, oldest first."""
    context = load_context(ctx)
    predicates = []
    if tag:
        predicates.append(has_tag(tag))
    if file:
        predicates.append(tracks_file(file))

    engine = SnapshotEngine(context)
    groups = engine.list_groups(lambda g: all(p(g) for p in predicates))
    if not groups:
        console.print("No snapshots found.")
        return
    console.print(group_table(groups))


def info_cmd(
    ctx: typer.Context,
    snapshot_id: str = typer.Argument(..., help="Snapshot id, with or without 'env-'."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw metadata record."),
) -> None:
    """Show detailed metadata for a snapshot."""
    context = load_context(ctx)
    with cli_errors():
        group = context.store.read_metadata(snapshot_id)
    if as_json:
        console.print_json(group.model_dump_json())
        return
    console.print(group_panel(group))
