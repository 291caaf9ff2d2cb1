"""Recipe file I/O and Folder construction.

This module provides functions for loading and saving recipe files in TOML
format with validation using Pydantic models, and for turning a recipe into
a ready-to-use Folder.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import tomli_w
from pydantic import ValidationError

from sheaf.core.folder import Folder
from sheaf.core.options import FilterSet
from sheaf.core.paths import get_recipe_path
from sheaf.models.recipe import Recipe, RecipeEntry, RecipeMeta

logger = logging.getLogger(__name__)


class RecipeError(Exception):
    """Base exception for recipe-related errors."""


class RecipeNotFoundError(RecipeError):
    """Raised when the recipe file is not found."""


class RecipeParseError(RecipeError):
    """Raised when the recipe file cannot be parsed."""


class RecipeValidationError(RecipeError):
    """Raised when recipe content is invalid."""


def load_recipe(path: Path | None = None) -> Recipe:
    """Load and validate a recipe from a TOML file.

    Args:
        path: Path to the recipe file. If None, uses the default recipe path.

    Returns:
        Validated Recipe object.

    Raises:
        RecipeNotFoundError: If the recipe file doesn't exist.
        RecipeParseError: If the TOML syntax is invalid.
        RecipeValidationError: If the content doesn't match the schema.
    """
    recipe_path = path or get_recipe_path()

    if not recipe_path.exists():
        raise RecipeNotFoundError(f"Recipe not found: {recipe_path}")

    try:
        with open(recipe_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise RecipeParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise RecipeError(f"Failed to read recipe: {e}") from e

    try:
        return Recipe.model_validate(data)
    except ValidationError as e:
        raise RecipeValidationError(f"Invalid recipe content: {e}") from e


def save_recipe(recipe: Recipe, path: Path | None = None) -> Path:
    """Save a recipe to a TOML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.

    Args:
        recipe: The Recipe object to save.
        path: Path to save the recipe. If None, uses the default recipe path.

    Returns:
        Path where the recipe was saved.

    Raises:
        RecipeError: If the file cannot be written.
    """
    recipe_path = path or get_recipe_path()
    data = _recipe_to_dict(recipe)

    tmp_path: Path | None = None
    try:
        recipe_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=recipe_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(tmp_path, recipe_path)
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise RecipeError(f"Failed to write recipe: {e}") from e

    return recipe_path


def recipe_exists(path: Path | None = None) -> bool:
    """Check if a recipe file exists.

    Args:
        path: Path to check. If None, uses the default recipe path.
    """
    return (path or get_recipe_path()).exists()


def require_recipe(recipe_path: Path | None = None) -> Recipe:
    """Load a recipe or exit with a helpful error message.

    Args:
        recipe_path: Optional custom recipe path.

    Returns:
        Loaded and validated Recipe.

    Raises:
        typer.Exit: If the recipe cannot be loaded.
    """
    import typer

    from sheaf.utils.formatting import print_error, print_info

    path = recipe_path or get_recipe_path()
    try:
        return load_recipe(path)
    except RecipeNotFoundError as e:
        print_error(f"Recipe not found: {path}")
        print_info("Run 'sheaf init' to create a recipe template.")
        raise typer.Exit(code=1) from e
    except RecipeError as e:
        print_error(f"Failed to load recipe: {e}")
        raise typer.Exit(code=1) from e


def build_folder(recipe: Recipe, base_dir: Path) -> Folder:
    """Turn a recipe into a Folder.

    Args:
        recipe: Validated recipe.
        base_dir: Directory relative entry paths are resolved against,
            normally the directory holding the recipe file.

    Returns:
        Folder with one contribution per recipe entry, in recipe order.

    Raises:
        ConfigurationError: If an entry cannot be expressed as filters.
    """
    folder = Folder()
    for entry in recipe.entries:
        path = _resolve_entry_path(entry, base_dir)
        filters = _entry_filters(entry)

        if entry.into:

            def populate(
                nested: Folder,
                path: Path = path,
                entry: RecipeEntry = entry,
                filters: FilterSet = filters,
            ) -> None:
                nested.add(path, *entry.glob, filters=filters)

            folder.add_in(entry.into, populate)
        else:
            folder.add(path, *entry.glob, filters=filters)

        logger.debug("Recipe entry %s -> %s", entry.path, path)
    return folder


def create_template_recipe() -> Recipe:
    """Create the starter recipe written by ``sheaf init``."""
    return Recipe(
        meta=RecipeMeta(version="1.0", description="Example recipe"),
        entries=[
            RecipeEntry(path="README.md"),
            RecipeEntry(path="src", glob=["**/*.py", "!**/__pycache__/**"]),
            RecipeEntry(path="docs", glob=["**/*.md"], ignore_root=True, into="docs"),
        ],
    )


def _resolve_entry_path(entry: RecipeEntry, base_dir: Path) -> Path:
    path = Path(entry.path).expanduser()
    if path.is_absolute():
        return path
    return base_dir / path


def _entry_filters(entry: RecipeEntry) -> FilterSet:
    filters = FilterSet()
    if entry.depth is not None:
        filters = filters.depth(entry.depth)
    if entry.ignore_root:
        filters = filters.ignore_root()
    return filters


def _recipe_to_dict(recipe: Recipe) -> dict[str, Any]:
    """Convert a Recipe to a dictionary suitable for TOML serialization.

    Optional fields at their defaults are left out to keep the file short.
    """
    meta: dict[str, Any] = {"version": recipe.meta.version}
    if recipe.meta.description:
        meta["description"] = recipe.meta.description
    return {
        "meta": meta,
        "entries": [_entry_to_dict(entry) for entry in recipe.entries],
    }


def _entry_to_dict(entry: RecipeEntry) -> dict[str, Any]:
    result: dict[str, Any] = {"path": entry.path}
    if entry.glob:
        result["glob"] = list(entry.glob)
    if entry.depth is not None:
        result["depth"] = entry.depth
    if entry.ignore_root:
        result["ignore_root"] = True
    if entry.into:
        result["into"] = entry.into
    return result
