"""Copy command implementation.

Copies files and glob-filtered directory trees into a target directory,
replacing files that already exist there.
"""

from pathlib import Path
from typing import Annotated

import typer

from sheaf.cli.types import build_call_filters, build_source_folder, run_transfer
from sheaf.core.errors import ConfigurationError
from sheaf.utils.formatting import print_error


def copy(
    ctx: typer.Context,
    to: Annotated[
        Path,
        typer.Option("--to", "-t", help="Target directory."),
    ],
    sources: Annotated[
        list[Path] | None,
        typer.Argument(help="Files or directories to copy."),
    ] = None,
    globs: Annotated[
        list[str] | None,
        typer.Option("--glob", "-g", help="Include pattern, or exclude with a leading '!'."),
    ] = None,
    ignore_root: Annotated[
        bool,
        typer.Option("--ignore-root", help="Copy directory contents without the directory itself."),
    ] = False,
    into: Annotated[
        str | None,
        typer.Option("--into", "-i", help="Relative directory inside the target."),
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
    """Copy entries into a target directory.

    Examples:
        sheaf copy src --to backup                  # backup/src/...
        sheaf copy src --to backup --ignore-root    # backup/...
        sheaf copy src docs --to dist -g '**/*.md'  # only markdown files
    """
    if not sources and recipe is None:
        print_error("Nothing to copy: give at least one source or --recipe.")
        raise typer.Exit(code=1)

    try:
        filters = build_call_filters(depth=depth, ignore_root=ignore_root, into=into)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    folder = build_source_folder(sources, recipe)
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    run_transfer("copy", folder, to, globs, filters, show=not quiet)
