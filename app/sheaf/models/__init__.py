"""Data models for sheaf.

This module exports the configuration structures read from recipe files.
"""

from sheaf.models.recipe import Recipe, RecipeEntry, RecipeMeta

__all__ = [
    "Recipe",
    "RecipeEntry",
    "RecipeMeta",
]
