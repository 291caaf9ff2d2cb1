"""Init command implementation.

Creates a recipe.toml template describing a small example folder.
"""

from pathlib import Path
from typing import Annotated

import typer

from sheaf.core.paths import ensure_config_dir, get_recipe_path
from sheaf.core.recipe import RecipeError, create_template_recipe, recipe_exists, save_recipe
from sheaf.models.recipe import Recipe
from sheaf.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)


def _show_recipe_summary(recipe: Recipe, output_path: Path) -> None:
    """Display a summary of the recipe about to be written.

    Args:
        recipe: The recipe to summarize.
        output_path: Path where the recipe will be saved.
    """
    console.print()
    console.print("[bold]Recipe Summary[/bold]")
    console.print(f"  Output: [muted]{output_path}[/muted]")
    console.print(f"  Entries: [bold]{recipe.entry_count}[/bold]")
    for entry in recipe.entries:
        globs = f" [muted]{' '.join(entry.glob)}[/muted]" if entry.glob else ""
        target = f" -> [info]{entry.into}/[/info]" if entry.into else ""
        console.print(f"    {entry.path}{globs}{target}")
    console.print()


def init_recipe(
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path for the recipe file.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing recipe without prompting.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be created without writing files.",
        ),
    ] = False,
) -> None:
    """Create a recipe template.

    Examples:
        sheaf init                       # Create recipe in the config directory
        sheaf init --output recipe.toml  # Create recipe at a custom path
        sheaf init --force               # Overwrite an existing recipe
        sheaf init --dry-run             # Preview without writing
    """
    output_path = output or get_recipe_path()

    if recipe_exists(output_path):
        if dry_run:
            print_warning(f"Recipe already exists: {output_path}")
            print_info("Would be overwritten with --force.")
        elif not force:
            print_error(f"Recipe already exists: {output_path}")
            print_info("Use --force to overwrite or specify a different path with --output.")
            raise typer.Exit(code=1)
        else:
            print_warning(f"Overwriting existing recipe: {output_path}")

    recipe = create_template_recipe()
    _show_recipe_summary(recipe, output_path)

    if dry_run:
        print_info("[DRY-RUN] No files were written.")
        return

    try:
        if output is None:
            ensure_config_dir()
        saved_path = save_recipe(recipe, output_path)
    except (RecipeError, RuntimeError) as e:
        print_error(f"Failed to save recipe: {e}")
        raise typer.Exit(code=1) from e
    print_success(f"Recipe created: {saved_path}")
