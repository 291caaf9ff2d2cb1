"""Walk command implementation.

Lists the files and directories a set of sources and glob patterns selects,
without touching anything.
"""

from pathlib import Path
from typing import Annotated

import typer

from sheaf.cli.display import create_walk_table, print_walk_json
from sheaf.cli.types import EntryKind, OutputFormat, build_call_filters, build_source_folder
from sheaf.core.errors import SheafError
from sheaf.core.locations import Directory, File
from sheaf.core.walker import WalkEntry
from sheaf.utils.formatting import console, print_error, print_info


def walk(
    sources: Annotated[
        list[Path] | None,
        typer.Argument(help="Files or directories to walk (default: current directory)."),
    ] = None,
    globs: Annotated[
        list[str] | None,
        typer.Option("--glob", "-g", help="Include pattern, or exclude with a leading '!'."),
    ] = None,
    kind: Annotated[
        EntryKind,
        typer.Option("--kind", "-k", help="List files, directories or both.", case_sensitive=False),
    ] = EntryKind.ALL,
    depth: Annotated[
        int | None,
        typer.Option("--depth", "-d", min=0, help="Maximum depth below each directory."),
    ] = None,
    recipe: Annotated[
        Path | None,
        typer.Option("--recipe", "-r", help="Recipe file describing the entries."),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
    ] = OutputFormat.TABLE,
) -> None:
    """List the entries selected by sources and glob patterns.

    Examples:
        sheaf walk src -g '**/*.py'           # Python files below src
        sheaf walk . -g '**' -g '!build/**'   # everything except build
        sheaf walk --recipe recipe.toml       # entries of a recipe
    """
    if not sources and recipe is None:
        sources = [Path.cwd()]

    folder = build_source_folder(sources, recipe)
    try:
        filters = build_call_filters(depth=depth)
        entries = list(folder.walk_with_base(*(globs or []), filters=filters))
    except SheafError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    entries = _select_kind(entries, kind)

    if output_format == OutputFormat.JSON:
        print_walk_json(entries)
        return

    if not entries:
        print_info("No entries matched.")
        return

    console.print(create_walk_table(entries))
    files = sum(1 for _, location in entries if isinstance(location, File))
    console.print(f"\n[dim]{files} file(s), {len(entries) - files} directory(ies)[/dim]")


def _select_kind(entries: list[WalkEntry], kind: EntryKind) -> list[WalkEntry]:
    if kind == EntryKind.FILES:
        return [entry for entry in entries if isinstance(entry[1], File)]
    if kind == EntryKind.DIRECTORIES:
        return [entry for entry in entries if isinstance(entry[1], Directory)]
    return entries
