"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

_STYLES: dict[str, str] = {
    "text": "#ffffff",
    "muted": "#b2bec3",
    "dim": "#b2bec3",
    "header": "#69B9A1",
    "bold_header": "bold #69B9A1",
    "border": "#29526d",
    "success": "#03b971",
    "warning": "#f5b332",
    "error": "bold #f53263",
    "info": "#0ec1c8",
    "entry.directory": "bold #0e8ac8",
    "entry.file": "#ffffff",
    "entry.symlink": "#c1ff62",
    "entry.other": "#b2bec3",
}


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances
console = Console(theme=Theme(_STYLES), color_system=_detect_color_system())
err_console = Console(theme=Theme(_STYLES), stderr=True, color_system=_detect_color_system())


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route library logging to stderr through Rich.

    Args:
        verbose: Show DEBUG messages (every staged path).
        quiet: Show errors only.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logger = logging.getLogger("hwsnap")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=err_console, show_path=False, markup=False))
    logger.setLevel(level)
    logger.propagate = False


def create_table(title: str) -> Table:
    """Create a pre-configured table with the shared header and border styles."""
    return Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )


def format_size(size_bytes: int | None) -> str:
    """Format byte count as human-readable string."""
    if size_bytes is None or size_bytes == 0:
        return "0 B"
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(size) < 1024:
            return f"{size:.1f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= 1024
    return f"{size:.1f} TB"


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{escape(message)}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {escape(message)}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{escape(message)}[/]")


def suppress_warnings() -> None:
    """Drop WARNING records from hwsnap log output; errors still show."""
    logger = logging.getLogger("hwsnap")
    for handler in logger.handlers:
        handler.addFilter(lambda record: record.levelno != logging.WARNING)
