"""``envsnap export ZIP`` and ``envsnap import ZIP``."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from envsnap.cli.commands._common import cli_errors, console, load_context
from envsnap.integrations.archive import export_snapshots, import_snapshots


def export_cmd(
    ctx: typer.Context,
    output_zip: Path = typer.Argument(..., help="Zip file to write."),
) -> None:
    """Export all snapshots as a zip file."""
    store = load_context(ctx).store
    with cli_errors():
        names = export_snapshots(store, output_zip)
    console.print(f"Exported {len(names)} files to {escape(str(output_zip))}")


def import_cmd(
    ctx: typer.Context,
    input_zip: Path = typer.Argument(..., help="Zip file to import."),
) -> None:
    """Import snapshots from a zip file.  Existing files are never overwritten."""
    store = load_context(ctx).store
    with cli_errors():
        imported, skipped = import_snapshots(store, input_zip)
    console.print(f"Imported {len(imported)} files from {escape(str(input_zip))}")
    if skipped:
        console.print(f"[yellow]Skipped {len(skipped)} existing or unsafe entries[/yellow]")
