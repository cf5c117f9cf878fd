"""CLI commands for hwsnap.

This package contains all subcommand implementations.
"""

from hwsnap.cli.commands import config, paths, snapshot

__all__ = ["config", "paths", "snapshot"]
