"""Shared Rich display functions for walks and bulk-action results.

Provides reusable table builders and summary printers used by the walk,
copy, move, delete and pack commands.
"""

import json
from collections.abc import Sequence

from rich.table import Table

from sheaf.core.locations import Directory, Location
from sheaf.core.walker import WalkEntry
from sheaf.utils.formatting import console, create_entry_table, format_size, print_success

# action name -> (past tense, theme style)
ACTION_LABELS = {
    "copy": ("copied", "action.copy"),
    "move": ("moved", "action.move"),
    "delete": ("deleted", "action.delete"),
    "pack": ("packed", "action.pack"),
}


def _size_of(location: Location) -> int | None:
    if isinstance(location, Directory):
        return None
    try:
        return location.stat().st_size
    except FileNotFoundError:
        # moved or deleted by the action being reported
        return None


def _kind_icon(location: Location) -> str:
    if isinstance(location, Directory):
        return "[entry.directory]d[/]"
    return "[entry.file]f[/]"


def create_walk_table(entries: Sequence[WalkEntry], title: str = "Entries") -> Table:
    """Create a Rich table listing walked entries.

    Paths are shown relative to the directory they were found under.

    Args:
        entries: (base directory, location) pairs.
        title: Table title.

    Returns:
        Rich Table configured for entry display.
    """
    table = create_entry_table(title)
    for base, location in entries:
        size = _size_of(location)
        style = "entry.directory" if isinstance(location, Directory) else "entry.file"
        table.add_row(
            _kind_icon(location),
            f"[{style}]{location.relative_to(base)}[/]",
            format_size(size) if size is not None else "-",
        )
    return table


def print_walk_json(entries: Sequence[WalkEntry]) -> None:
    """Print walked entries as JSON."""
    data = [
        {
            "base": str(base),
            "path": str(location.relative_to(base)),
            "type": "directory" if isinstance(location, Directory) else "file",
            "size_bytes": _size_of(location),
        }
        for base, location in entries
    ]
    console.print_json(json.dumps(data))


def create_results_table(action: str, locations: Sequence[Location]) -> Table:
    """Create a Rich table listing the locations an action touched.

    Args:
        action: Action name ("copy", "move", "delete" or "pack").
        locations: Source locations returned by the action.

    Returns:
        Rich Table configured for results display.
    """
    past, style = ACTION_LABELS[action]
    table = Table(
        title=f"{past.capitalize()} Entries",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Type", width=4, justify="center")
    table.add_column("Path", no_wrap=True)

    for location in locations:
        table.add_row(_kind_icon(location), f"[{style}]{location}[/]")
    return table


def print_results_summary(action: str, locations: Sequence[Location], target: str | None = None) -> None:
    """Print a one-line summary of a finished action.

    Args:
        action: Action name ("copy", "move", "delete" or "pack").
        locations: Source locations returned by the action.
        target: Destination shown in the message, if any.
    """
    past, _ = ACTION_LABELS[action]
    files = sum(1 for loc in locations if not isinstance(loc, Directory))
    directories = len(locations) - files

    message = f"{past.capitalize()} {files} file(s) and {directories} directory(ies)"
    if target:
        message += f" to {target}"
    print_success(message + ".")
