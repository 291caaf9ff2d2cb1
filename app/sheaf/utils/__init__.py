"""Utility modules for sheaf.

This module exports commonly used console helpers.
"""

from sheaf.utils.formatting import (
    console,
    create_entry_table,
    err_console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
    set_quiet,
)

__all__ = [
    "console",
    "create_entry_table",
    "err_console",
    "format_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "set_quiet",
]
