"""``envsnap plugins`` and ``envsnap plugin NAME COMMAND``: manifest plugins."""

from __future__ import annotations

from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from envsnap.cli.commands._common import cli_errors, console, load_context
from envsnap.plugins.registry import PluginRegistry


def _registry(ctx: typer.Context) -> PluginRegistry:
    registry = PluginRegistry(load_context(ctx).plugins_directory())
    registry.load()
    return registry


def plugins_cmd(ctx: typer.Context) -> None:
    """List installed plugins and what they provide."""
    plugins = _registry(ctx).list_plugins()
    if not plugins:
        console.print("[dim]No plugins installed.[/dim]")
        return

    table = Table(title="Installed Plugins")
    table.add_column("Name", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Commands")
    table.add_column("Hooks")
    table.add_column("Description")
    for plugin in plugins:
        table.add_row(
            escape(plugin.name),
            escape(plugin.version),
            escape(", ".join(c.name for c in plugin.commands)),
            ", ".join(h.name.value for h in plugin.hooks),
            escape(plugin.description),
        )
    console.print(table)


def plugin_run_cmd(
    ctx: typer.Context,
    plugin_name: str = typer.Argument(..., help="Plugin name."),
    command_name: str = typer.Argument(..., help="Command declared by the plugin."),
    args: Optional[list[str]] = typer.Argument(None, help="Arguments passed to the command."),
) -> None:
    """Run a command declared by a plugin."""
    registry = _registry(ctx)
    with cli_errors():
        output = registry.run_command(plugin_name, command_name, args or [])
    if output:
        console.print(escape(output.rstrip("\n")))
