"""Recipe models describing a Folder declaratively.

A recipe.toml lists the entries of a virtual folder together with their
glob filters, so a bulk action can be repeated without retyping them.
"""

from pathlib import PurePosixPath
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sheaf.core.errors import ConfigurationError
from sheaf.core.patterns import compile_pattern


class RecipeMeta(BaseModel):
    """Metadata section of the recipe.

    Attributes:
        version: Recipe schema version (e.g., "1.0").
        description: Optional free text shown by ``sheaf walk``.
    """

    model_config = ConfigDict(extra="forbid")

    version: Annotated[str, Field(description="Recipe schema version")] = "1.0"
    description: Annotated[str | None, Field(description="What the recipe collects")] = None


class RecipeEntry(BaseModel):
    """One file, directory or glob-filtered subtree of the folder.

    Attributes:
        path: File or directory path. Relative paths are resolved against
            the directory containing the recipe.
        glob: Include/exclude glob patterns for directory entries.
        depth: Maximum depth below the directory (None = unbounded).
        ignore_root: Place the directory's children directly at the target.
        into: Relative directory the entry is placed in at the target.
    """

    model_config = ConfigDict(extra="forbid")

    path: Annotated[str, Field(min_length=1, description="File or directory path")]
    glob: Annotated[
        list[str],
        Field(default_factory=list, description="Include/exclude glob patterns"),
    ]
    depth: Annotated[int | None, Field(ge=0, description="Maximum traversal depth")] = None
    ignore_root: Annotated[
        bool,
        Field(description="Drop the directory name from target paths"),
    ] = False
    into: Annotated[str | None, Field(description="Relative target directory")] = None

    @field_validator("glob")
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        """Reject glob patterns that cannot be compiled."""
        for pattern in v:
            try:
                compile_pattern(pattern)
            except ConfigurationError as e:
                raise ValueError(str(e)) from e
        return v

    @field_validator("into")
    @classmethod
    def validate_into(cls, v: str | None) -> str | None:
        """Require the target directory to be relative."""
        if v is not None and (PurePosixPath(v).is_absolute() or v.startswith("\\")):
            msg = f"'into' must be a relative path: {v}"
            raise ValueError(msg)
        return v


class Recipe(BaseModel):
    """Complete recipe: metadata plus the ordered list of entries.

    Attributes:
        meta: Metadata section.
        entries: Folder entries in the order they are added.
    """

    model_config = ConfigDict(extra="forbid")

    meta: Annotated[RecipeMeta, Field(default_factory=RecipeMeta, description="Recipe metadata")]
    entries: Annotated[
        list[RecipeEntry],
        Field(default_factory=list, description="Folder entries"),
    ]

    @property
    def entry_count(self) -> int:
        """Number of entries in the recipe."""
        return len(self.entries)
