"""CLI package for hwsnap.

This package contains the Typer application and all subcommands.
"""

from hwsnap.cli.main import app

__all__ = ["app"]
