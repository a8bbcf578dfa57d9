"""CLI subcommand implementations, registered in ``envsnap.cli.app``."""
