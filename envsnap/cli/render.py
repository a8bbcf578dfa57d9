"""Rich terminal rendering for snapshot listings, diffs and health reports.

Color scheme
------------
- green     : added lines, HEALTHY
- red       : removed lines, MISSING
- yellow    : sensitive keys, CORRUPTED
- dim       : unchanged lines
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from envsnap.models.reports import (
    DiffOp,
    FileDiff,
    HealthReport,
    HealthStatus,
    HealthSummary,
    PruneResult,
)
from envsnap.models.snapshots import SnapshotGroup

_STATUS_STYLES: dict[HealthStatus, str] = {
    HealthStatus.HEALTHY: "bold green",
    HealthStatus.CORRUPTED: "bold yellow",
    HealthStatus.MISSING: "bold red",
}

_DIFF_STYLES: dict[DiffOp, tuple[str, str]] = {
    DiffOp.ADDED: ("+", "green"),
    DiffOp.REMOVED: ("-", "red"),
    DiffOp.UNCHANGED: (" ", "dim"),
}


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    return f"{size / 1024:.1f} KiB"


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

def group_table(groups: list[SnapshotGroup]) -> Table:
    table = Table(title="Snapshots")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Created (UTC)")
    table.add_column("Files")
    table.add_column("Tags", style="magenta")
    table.add_column("Description")
    table.add_column("By", style="dim")
    table.add_column("Git", style="dim")

    for group in groups:
        files = escape(", ".join(group.files))
        if group.partial:
            files += f" [yellow]({len(group.stats.failed_files)} failed)[/yellow]"
        by = "@".join(p for p in (group.captured_by.user, group.captured_by.hostname) if p)
        git = f"{group.git.short_hash}@{group.git.branch}" if group.git else ""
        table.add_row(
            group.id,
            group.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            files,
            escape(", ".join(group.tags)),
            escape(group.description or ""),
            escape(by),
            escape(git),
        )
    return table


def group_panel(group: SnapshotGroup) -> Panel:
    lines = [
        f"[bold]ID:[/bold]          {group.id}",
        f"[bold]Created:[/bold]     {group.created_at.isoformat()}",
        f"[bold]Description:[/bold] {escape(group.description or '-')}",
        f"[bold]Tags:[/bold]        {escape(', '.join(group.tags) or '-')}",
        f"[bold]User:[/bold]        {escape(group.captured_by.user or '-')}",
        f"[bold]Host:[/bold]        {escape(group.captured_by.hostname or '-')}",
    ]
    if group.git:
        lines.append(f"[bold]Git:[/bold]         {group.git.hash} ({escape(group.git.branch or '?')})")
        if group.git.remote:
            lines.append(f"[bold]Remote:[/bold]      {escape(group.git.remote)}")
    lines.append(
        f"[bold]Size:[/bold]        {_format_size(group.stats.total_size)}"
        f" in {group.stats.capture_duration_ms:.1f} ms"
    )
    lines.append("")
    for stat in group.stats.files:
        if stat.captured:
            lines.append(
                f"  [green]{escape(stat.name)}[/green]  {_format_size(stat.size or 0)}"
                f"  [dim]{stat.hash or 'no hash'}[/dim]"
            )
        else:
            lines.append(f"  [red]{escape(stat.name)}[/red]  failed: {escape(stat.error or '?')}")
    return Panel("\n".join(lines), title="[bold]Snapshot[/bold]", border_style="cyan")


# ---------------------------------------------------------------------------
# Diffs
# ---------------------------------------------------------------------------

def print_diffs(console: Console, diffs: list[FileDiff], *, show_sensitive: bool = True) -> bool:
    """Print file diffs.  Returns True if any file had changes."""
    any_changes = False
    for diff in diffs:
        if len(diffs) > 1:
            console.print(f"\n[bold]--- Diff for {escape(diff.file)} ---[/bold]")
        if diff.missing_artifact:
            console.print(f"[red]Snapshot file not found for {escape(diff.file)}[/red]")
            continue
        if diff.no_previous:
            console.print(f"[dim]No previous snapshot to compare {escape(diff.file)} with.[/dim]")
            continue
        if not diff.has_changes:
            console.print(f"[dim]No changes in {escape(diff.file)}.[/dim]")
            continue

        any_changes = True
        console.print(f"[bold red]--- {escape(diff.old_label)}[/bold red]")
        console.print(f"[bold green]+++ {escape(diff.new_label)}[/bold green]")
        for line in diff.lines:
            marker, style = _DIFF_STYLES[line.op]
            console.print(Text(f"{marker}{line.text}", style=style))

        if show_sensitive and diff.sensitive_lines:
            for line in diff.sensitive_lines:
                console.print(Text(f"[SENSITIVE] {line.text}", style="yellow"))
    return any_changes


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

def print_health_report(console: Console, report: HealthReport) -> None:
    style = _STATUS_STYLES[report.status]
    console.print(
        f"[{style}]{report.status.value.upper()}[/{style}] - Snapshot: {report.snapshot_id}"
        f" ({report.file_count} files)"
    )
    for issue in report.issues:
        console.print(f"  - [dim]{escape(issue)}[/dim]")


def print_health_summary(console: Console, summary: HealthSummary) -> None:
    console.print(f"[bold]Health check for {len(summary.reports)} snapshots:[/bold]")
    for report in summary.unhealthy:
        print_health_report(console, report)
    console.print()
    for status in HealthStatus:
        style = _STATUS_STYLES[status]
        console.print(f"[{style}]{status.value.title()}: {summary.counts.get(status, 0)}[/{style}]")


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------

def print_prune_result(console: Console, result: PruneResult) -> None:
    if result.nothing_to_prune:
        console.print(f"Nothing to prune. Total snapshots: {result.total_before}")
        return
    for group_id in result.deleted:
        console.print(f"[red]Deleted snapshot:[/red] {group_id}")
    console.print(f"Pruned to keep last {result.keep} snapshots.")
