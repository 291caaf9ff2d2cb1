"""Shared types and utilities for CLI commands.

This module provides the option types and the folder/filter builders used
by every bulk-action command.
"""

from enum import Enum
from pathlib import Path

import typer

from sheaf.cli.display import create_results_table, print_results_summary
from sheaf.core.errors import SheafError
from sheaf.core.folder import Folder
from sheaf.core.locations import Location
from sheaf.core.options import FilterSet
from sheaf.core.recipe import build_folder, require_recipe
from sheaf.utils.formatting import console, print_error, print_info, print_warning


class OutputFormat(str, Enum):
    """Output format options for listings."""

    TABLE = "table"
    JSON = "json"


class EntryKind(str, Enum):
    """Which kinds of entries a walk lists."""

    ALL = "all"
    FILES = "files"
    DIRECTORIES = "dirs"


def build_source_folder(sources: list[Path] | None, recipe_path: Path | None = None) -> Folder:
    """Combine command-line sources and an optional recipe into one Folder.

    Recipe entries come first, followed by the sources in the order given.
    Sources that do not exist are reported but kept, since the bulk actions
    treat absent entries as no-ops.

    Args:
        sources: Files or directories given on the command line.
        recipe_path: Optional recipe file to load.

    Returns:
        Folder over all entries.

    Raises:
        typer.Exit: If the recipe cannot be loaded.
    """
    folder = Folder()
    if recipe_path is not None:
        recipe = require_recipe(recipe_path)
        folder.add(build_folder(recipe, recipe_path.resolve().parent))

    for source in sources or []:
        if not source.exists() and not source.is_symlink():
            print_warning(f"Source does not exist: {source}")
        folder.add(source)
    return folder


def build_call_filters(
    depth: int | None = None,
    ignore_root: bool = False,
    into: str | None = None,
) -> FilterSet:
    """Build the call-site FilterSet from common command options.

    Raises:
        ConfigurationError: If ``into`` is absolute.
    """
    filters = FilterSet()
    if depth is not None:
        filters = filters.depth(depth)
    if ignore_root:
        filters = filters.ignore_root()
    return filters.allocate_in(into)


def run_transfer(
    action: str,
    folder: Folder,
    destination: Path,
    globs: list[str] | None,
    filters: FilterSet,
    show: bool = True,
) -> list[Location]:
    """Copy or move a folder's entries and report the outcome.

    Args:
        action: "copy" or "move".
        folder: Entries to transfer.
        destination: Target directory.
        globs: Call-site glob patterns.
        filters: Call-site FilterSet.
        show: Print the table of transferred entries.

    Returns:
        Source locations that were transferred.

    Raises:
        typer.Exit: If the action fails.
    """
    run = folder.copy_all_to if action == "copy" else folder.move_all_to
    try:
        locations = run(destination, *(globs or []), filters=filters)
    except SheafError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not locations:
        print_info("No entries matched.")
        return locations

    if show:
        console.print(create_results_table(action, locations))
    print_results_summary(action, locations, str(destination))
    return locations
