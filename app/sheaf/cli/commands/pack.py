"""Pack command implementation.

Writes the selected files into a zip, jar or tar archive.
"""

from pathlib import Path
from typing import Annotated

import typer

from sheaf.cli.display import create_results_table, print_results_summary
from sheaf.cli.types import build_call_filters, build_source_folder
from sheaf.core.errors import SheafError
from sheaf.utils.formatting import console, print_error, print_info


def pack(
    ctx: typer.Context,
    to: Annotated[
        Path,
        typer.Option("--to", "-t", help="Archive file to write.", dir_okay=False),
    ],
    sources: Annotated[
        list[Path] | None,
        typer.Argument(help="Files or directories to pack."),
    ] = None,
    globs: Annotated[
        list[str] | None,
        typer.Option("--glob", "-g", help="Include pattern, or exclude with a leading '!'."),
    ] = None,
    ignore_root: Annotated[
        bool,
        typer.Option("--ignore-root", help="Drop directory names from entry names."),
    ] = False,
    into: Annotated[
        str | None,
        typer.Option("--into", "-i", help="Directory prefix for all entry names."),
    ] = None,
    depth: Annotated[
        int | None,
        typer.Option("--depth", "-d", min=0, help="Maximum depth below each directory."),
    ] = None,
    recipe: Annotated[
        Path | None,
        typer.Option("--recipe", "-r", help="Recipe file describing the entries."),
    ] = None,
) -> None:
    """Pack selected files into an archive.

    The archive type follows the file extension.

    Examples:
        sheaf pack src --to src.zip                   # src/... entries
        sheaf pack src --to src.tar.gz --ignore-root  # entries without src/
        sheaf pack . --to docs.zip -g '**/*.md'       # only markdown files
    """
    if not sources and recipe is None:
        print_error("Nothing to pack: give at least one source or --recipe.")
        raise typer.Exit(code=1)

    folder = build_source_folder(sources, recipe)
    try:
        filters = build_call_filters(depth=depth, ignore_root=ignore_root, into=into)
        packed = folder.pack_all_to(to, *(globs or []), filters=filters)
    except SheafError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not packed:
        print_info(f"No files matched; wrote an empty archive: {to}")
        return

    if not (ctx.obj and ctx.obj.get("quiet")):
        console.print(create_results_table("pack", packed))
    print_results_summary("pack", packed, str(to))
