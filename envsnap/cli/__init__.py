"""envsnap CLI: Typer-based command-line interface.

Provides the ``envsnap`` command with subcommands for capturing,
listing, diffing, restoring, tagging, pruning and verifying snapshots.

All output uses Rich for formatted terminal display.
"""
