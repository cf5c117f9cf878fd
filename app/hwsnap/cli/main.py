"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from hwsnap import __version__
from hwsnap.cli.commands import config, paths, snapshot
from hwsnap.utils.formatting import configure_logging

# Create main Typer app
app = typer.Typer(
    name="hwsnap",
    help="Capture and restore hardware-describing /proc and /sys snapshots.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"hwsnap version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """hwsnap - capture and restore hardware snapshots.

    Snapshots hold the /proc and /sys pseudo-files that describe CPUs,
    memory, PCI devices, network interfaces and graphics cards, so that
    hardware discovery can later run against them instead of the live system.
    """
    configure_logging(verbose=verbose, quiet=quiet)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.add_typer(snapshot.app, name="snapshot")
app.add_typer(paths.app, name="paths")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
