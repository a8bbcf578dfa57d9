"""``envsnap health [ID]``: verify stored snapshots against their recorded hashes."""

from __future__ import annotations

from typing import Optional

import typer

from envsnap.cli.commands._common import cli_errors, console, load_context
from envsnap.cli.render import print_health_report, print_health_summary
from envsnap.core.verifier import IntegrityVerifier


def health_cmd(
    ctx: typer.Context,
    snapshot_id: Optional[str] = typer.Argument(
        None, help="Snapshot id to check.  Checks every snapshot when omitted."
    ),
) -> None:
    """Check snapshot integrity.  Exits 1 if any snapshot is unhealthy."""
    verifier = IntegrityVerifier(load_context(ctx).store)

    if snapshot_id:
        with cli_errors():
            report = verifier.verify(snapshot_id)
        print_health_report(console, report)
        healthy = report.healthy
    else:
        with cli_errors():
            summary = verifier.verify_all()
        print_health_summary(console, summary)
        healthy = not summary.unhealthy

    if not healthy:
        raise typer.Exit(code=1)
