"""Hardware path resolution command.

Shows where hardware discovery reads its pseudo-files from, honouring the
root mountpoint configuration. With ``--snapshot`` the archive is expanded
into a temporary directory that stands in for the root filesystem.
"""

import json
import os
import tempfile
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from hwsnap.core.config import ConfigError, HwsnapConfig, resolve_config, resolve_paths
from hwsnap.core.paths import HardwarePaths
from hwsnap.snapshot.errors import SnapshotError
from hwsnap.snapshot.expand import expand_snapshot
from hwsnap.utils.formatting import console, create_table, print_error, print_info

app = typer.Typer(
    help="Show resolved hardware paths.",
    invoke_without_command=True,
)


class OutputFormat(str, Enum):
    """Output format options for path display."""

    TABLE = "table"
    JSON = "json"


@app.callback(invoke_without_command=True)
def show_paths(
    snapshot: Annotated[
        Path | None,
        typer.Option(
            "--snapshot",
            "-s",
            help="Resolve paths inside this snapshot archive.",
        ),
    ] = None,
    root: Annotated[
        str | None,
        typer.Option(
            "--root",
            "-r",
            help="Root mountpoint (overrides config and environment).",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Show the pseudo-file paths hardware discovery reads."""
    try:
        config = resolve_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if root is not None:
        config = config.model_copy(update={"root_mountpoint": root})

    if snapshot is None:
        _show(config, output_format)
        return

    with tempfile.TemporaryDirectory(prefix="hwsnap-expand-") as tmp:
        try:
            expand_snapshot(snapshot, tmp)
        except SnapshotError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        if output_format == OutputFormat.TABLE:
            print_info(f"Snapshot {snapshot} expanded into {tmp}")
        _show(config.model_copy(update={"root_mountpoint": tmp}), output_format)


def _show(config: HwsnapConfig, output_format: OutputFormat) -> None:
    paths = resolve_paths(config)
    if output_format == OutputFormat.JSON:
        _print_json(config, paths)
        return
    _print_table(config, paths)


def _print_table(config: HwsnapConfig, paths: HardwarePaths) -> None:
    """Display resolved paths and whether they exist."""
    table = create_table(f"Hardware Paths (root: {escape(config.root_mountpoint)})")
    table.add_column("Name", no_wrap=True)
    table.add_column("Path", overflow="fold")
    table.add_column("Present", justify="center", width=7)

    for name, path in paths.as_dict().items():
        present = "[success]yes[/]" if os.path.exists(path) else "[muted]no[/]"
        table.add_row(name, escape(path), present)

    console.print(table)


def _print_json(config: HwsnapConfig, paths: HardwarePaths) -> None:
    """Display resolved paths as JSON."""
    data = {
        "root_mountpoint": config.root_mountpoint,
        "path_overrides": config.path_overrides,
        "paths": {
            name: {"path": path, "present": os.path.exists(path)}
            for name, path in paths.as_dict().items()
        },
    }
    console.print_json(json.dumps(data))
