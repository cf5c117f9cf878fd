"""Configuration commands.

Shows the effective configuration and writes a default config file.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from hwsnap.core.config import (
    ConfigError,
    get_default_config,
    resolve_config,
    save_config,
)
from hwsnap.core.paths import get_config_path
from hwsnap.utils.formatting import console, create_table, print_error, print_success

app = typer.Typer(
    help="Show and initialise hwsnap configuration.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to read."),
    ] = None,
) -> None:
    """Show the effective configuration (file plus environment)."""
    try:
        config = resolve_config(config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    table = create_table("Effective Configuration")
    table.add_column("Setting", no_wrap=True)
    table.add_column("Value", overflow="fold")
    table.add_row("config file", escape(str(config_path or get_config_path())))
    table.add_row("root_mountpoint", escape(config.root_mountpoint))
    for key, value in sorted(config.path_overrides.items()):
        table.add_row(escape(f"path_overrides[{key}]"), escape(value))
    table.add_row("disable_warnings", str(config.disable_warnings).lower())
    console.print(table)


@app.command()
def init(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to write."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a default configuration file."""
    path = config_path or get_config_path()
    if path.exists() and not force:
        print_error(f"Config already exists: {path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        written = save_config(get_default_config(), path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Wrote default config to {written}")
