"""Delete command implementation.

Deletes the files and directories selected by sources and glob patterns.
The selection is listed and confirmed before anything is removed.
"""

from pathlib import Path
from typing import Annotated

import typer

from sheaf.cli.display import create_results_table, create_walk_table, print_results_summary
from sheaf.cli.types import build_call_filters, build_source_folder
from sheaf.core.errors import SheafError
from sheaf.core.folder import Folder
from sheaf.core.locations import Directory
from sheaf.utils.formatting import console, print_error, print_info


def delete(
    ctx: typer.Context,
    sources: Annotated[
        list[Path] | None,
        typer.Argument(help="Files or directories to delete from."),
    ] = None,
    globs: Annotated[
        list[str] | None,
        typer.Option("--glob", "-g", help="Include pattern, or exclude with a leading '!'."),
    ] = None,
    depth: Annotated[
        int | None,
        typer.Option("--depth", "-d", min=0, help="Maximum depth below each directory."),
    ] = None,
    recipe: Annotated[
        Path | None,
        typer.Option("--recipe", "-r", help="Recipe file describing the entries."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show what would be deleted."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Delete selected entries.

    Directories are removed only once they are empty, so a directory that
    still holds unselected entries is kept.

    Examples:
        sheaf delete build                    # the whole build directory
        sheaf delete . -g '**/*.pyc' --yes    # compiled files, no prompt
        sheaf delete logs -g '*.log' -n       # preview only
    """
    if not sources and recipe is None:
        print_error("Nothing to delete: give at least one source or --recipe.")
        raise typer.Exit(code=1)

    folder = build_source_folder(sources, recipe)
    patterns = globs or []
    try:
        filters = build_call_filters(depth=depth)
        planned = list(folder.walk_with_base(*patterns, filters=filters))
    except SheafError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    # an unfiltered directory is deleted itself, which a walk never lists
    if not planned and not _deletes_roots(folder, patterns):
        print_info("No entries matched.")
        return

    title = "Planned Deletions (dry-run)" if dry_run else "Planned Deletions"
    if planned:
        console.print(create_walk_table(planned, title=title))

    if dry_run:
        print_info(f"[DRY-RUN] {len(planned)} entry(ies) would be deleted.")
        return

    if not yes:
        confirmed = typer.confirm(
            f"\nProceed with deleting {len(planned)} entry(ies)?",
            default=False,
        )
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    try:
        deleted = folder.delete_all(*patterns, filters=filters)
    except SheafError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not (ctx.obj and ctx.obj.get("quiet")):
        console.print(create_results_table("delete", deleted))
    print_results_summary("delete", deleted)


def _deletes_roots(folder: Folder, patterns: list[str]) -> bool:
    return not patterns and any(
        isinstance(location, Directory) and location.is_directory() for location in folder.entries()
    )
