"""Snapshot commands.

Provides commands to capture the hardware-describing pseudo-files of this
host into an archive, expand an archive into a directory, and inspect an
archive's content.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from hwsnap.core.config import ConfigError, resolve_config
from hwsnap.snapshot.create import create_snapshot, default_snapshot_name, temporary_build_dir
from hwsnap.snapshot.errors import SnapshotError
from hwsnap.snapshot.expand import expand_snapshot, list_snapshot
from hwsnap.snapshot.models import ArchiveEntry, EntryType, ExpandResult, SnapshotResult
from hwsnap.utils.formatting import (
    console,
    create_table,
    format_size,
    print_error,
    print_success,
    print_warning,
    suppress_warnings,
)

app = typer.Typer(
    help="Create, expand and inspect hardware snapshots.",
    invoke_without_command=True,
    no_args_is_help=True,
)


class OutputFormat(str, Enum):
    """Output format options for snapshot listing."""

    TABLE = "table"
    JSON = "json"


@app.command()
def create(
    ctx: typer.Context,
    out_path: Annotated[
        Path | None,
        typer.Option(
            "--out",
            "-o",
            help="Output file path. Defaults to $OS-$ARCH-$HASHSYSTEMNAME.tar.gz "
            "in the current directory.",
        ),
    ] = None,
    build_dir: Annotated[
        Path | None,
        typer.Option(
            "--build-dir",
            help="Staging directory, kept after capture. Defaults to a temporary directory.",
        ),
    ] = None,
    source_root: Annotated[
        Path,
        typer.Option(
            "--source-root",
            help="Directory to capture as the root filesystem.",
        ),
    ] = Path("/"),
) -> None:
    """Create a snapshot containing system information (Linux only)."""
    out = out_path if out_path is not None else Path(default_snapshot_name())
    warnings_enabled = _warnings_enabled()

    try:
        if build_dir is not None:
            result = create_snapshot(build_dir, out, source_root=str(source_root))
        else:
            with temporary_build_dir() as tmp:
                result = create_snapshot(tmp, out, source_root=str(source_root))
    except SnapshotError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not _is_quiet(ctx):
        _print_capture_summary(result)
    if result.skipped and warnings_enabled:
        print_warning(f"{len(result.skipped)} file(s) skipped: permission denied")
    print_success(f"Successfully wrote snapshot to {result.out_path}")


@app.command()
def expand(
    ctx: typer.Context,
    archive: Annotated[
        Path,
        typer.Argument(help="Snapshot archive to expand."),
    ],
    dest: Annotated[
        Path,
        typer.Argument(help="Empty or missing directory to expand into."),
    ],
) -> None:
    """Expand a snapshot into an empty directory."""
    try:
        result = expand_snapshot(archive, dest)
    except SnapshotError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not _is_quiet(ctx):
        _print_expand_summary(result)
    print_success(f"Expanded {archive} into {result.dest_path}")


@app.command("list")
def list_entries(
    archive: Annotated[
        Path,
        typer.Argument(help="Snapshot archive to inspect."),
    ],
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
    """List the entries of a snapshot without expanding it."""
    try:
        entries = list_snapshot(archive)
    except SnapshotError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if output_format == OutputFormat.JSON:
        _print_json(entries)
        return

    _print_table(entries)
    total = sum(e.size for e in entries)
    console.print(f"\n[dim]{len(entries)} entries ({format_size(total)} of file content)[/dim]")


# === Private helper functions ===


def _is_quiet(ctx: typer.Context) -> bool:
    return bool(ctx.obj and ctx.obj.get("quiet"))


def _warnings_enabled() -> bool:
    """Honour the disable_warnings setting from config file and environment."""
    try:
        config = resolve_config()
    except ConfigError as e:
        print_warning(f"Ignoring invalid configuration: {e}")
        return True
    if config.disable_warnings:
        suppress_warnings()
        return False
    return True


def _print_capture_summary(result: SnapshotResult) -> None:
    """Display what a capture staged."""
    table = create_table("Snapshot Summary")
    table.add_column("Item")
    table.add_column("Count", justify="right")
    table.add_row("Files", str(result.files))
    table.add_row("Symlinks", str(result.symlinks))
    table.add_row("Directories", str(result.directories))
    table.add_row("Archive entries", str(result.entries))
    table.add_row("Skipped", str(len(result.skipped)))
    console.print(table)


def _print_expand_summary(result: ExpandResult) -> None:
    """Display what an expansion restored."""
    table = create_table("Expansion Summary")
    table.add_column("Item")
    table.add_column("Count", justify="right")
    table.add_row("Files", str(result.files))
    table.add_row("Symlinks", str(result.symlinks))
    table.add_row("Directories", str(result.directories))
    table.add_row("Ignored", str(len(result.ignored)))
    console.print(table)


def _print_table(entries: list[ArchiveEntry]) -> None:
    """Display archive entries as a Rich table."""
    table = create_table("Snapshot Entries")
    table.add_column("Type", width=9)
    table.add_column("Mode", width=6)
    table.add_column("Size", justify="right")
    table.add_column("Name", overflow="fold")

    for entry in entries:
        style = f"entry.{entry.entry_type.value}"
        name = escape(entry.name)
        if entry.entry_type == EntryType.SYMLINK:
            name = f"{name} -> {escape(entry.link_target or '')}"
        table.add_row(
            f"[{style}]{entry.entry_type.value}[/]",
            f"{entry.mode:04o}",
            format_size(entry.size) if entry.entry_type == EntryType.FILE else "-",
            name,
        )

    console.print(table)


def _print_json(entries: list[ArchiveEntry]) -> None:
    """Display archive entries as JSON."""
    data = [
        {
            "name": e.name,
            "type": e.entry_type.value,
            "mode": f"{e.mode:04o}",
            "size": e.size,
            "link_target": e.link_target,
        }
        for e in entries
    ]
    console.print_json(json.dumps(data))
