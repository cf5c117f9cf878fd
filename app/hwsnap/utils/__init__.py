"""Utility modules for hwsnap.

This module exports commonly used utility functions.
"""

from hwsnap.utils.formatting import (
    configure_logging,
    console,
    create_table,
    err_console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
    suppress_warnings,
)

__all__ = [
    "configure_logging",
    "console",
    "create_table",
    "err_console",
    "format_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "suppress_warnings",
]
