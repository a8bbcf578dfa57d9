"""``envsnap watch``: snapshot automatically whenever tracked files change."""

from __future__ import annotations

from typing import Optional

import typer
from rich.markup import escape

from envsnap.cli.commands._common import cli_errors, console, load_context
from envsnap.core.engine import SnapshotEngine
from envsnap.integrations.watcher import SnapshotWatcher
from envsnap.models.snapshots import SnapshotGroup


def _announce(group: SnapshotGroup) -> None:
    console.print(f"[bold green]Snapshot created:[/bold green] {group.id}")


def watch_cmd(
    ctx: typer.Context,
    interval: Optional[float] = typer.Option(
        None, "--interval", "-n", min=0.05, help="Seconds between polls."
    ),
) -> None:
    """Watch the tracked files and snapshot on every change (Ctrl+C to stop)."""
    context = load_context(ctx)
    with cli_errors():
        engine = SnapshotEngine.from_context(context)
    watcher = SnapshotWatcher(
        engine,
        interval=interval or context.settings.watch_interval_seconds,
        on_snapshot=_announce,
    )
    names = ", ".join(p.name for p in watcher.paths)
    console.print(f"envsnap watcher started. Monitoring {escape(names)} for changes.")
    try:
        watcher.run()
    except KeyboardInterrupt:
        console.print("\n[dim]Watcher stopped.[/dim]")
