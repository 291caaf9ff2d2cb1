"""File and directory handles.

A Location is a thin value wrapper around a path. It caches nothing:
every query (exists, is_directory, children) goes back to the filesystem.
Symbolic links are never followed when deciding whether something is a
directory, so a link to a directory is handled like a file.
"""

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO


@dataclass(frozen=True, slots=True)
class Location:
    """Base class for File and Directory.

    Attributes:
        path: Filesystem path this handle points at.
    """

    path: Path

    @property
    def name(self) -> str:
        """Final path component."""
        return self.path.name

    @property
    def parent(self) -> "Directory":
        """Directory containing this location."""
        return Directory(self.path.parent)

    def exists(self) -> bool:
        """Check whether anything (including a dangling link) is at the path."""
        return self.path.exists() or self.path.is_symlink()

    def is_directory(self) -> bool:
        """Check whether the path currently is a real directory."""
        return self.path.is_dir() and not self.path.is_symlink()

    def stat(self) -> os.stat_result:
        """Return metadata without following symbolic links."""
        return self.path.lstat()

    def relative_to(self, base: "Directory") -> PurePosixPath:
        """Return this location's path relative to ``base`` with ``/`` separators."""
        return PurePosixPath(self.path.relative_to(base.path).as_posix())

    def children(self) -> list["Location"]:
        """List direct children. Files have none."""
        return []

    def __fspath__(self) -> str:
        return os.fspath(self.path)

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True, slots=True)
class File(Location):
    """Handle to a (possibly absent) file."""

    @property
    def extension(self) -> str:
        """Archive-aware extension without the leading dot.

        Compound tar extensions such as ``tar.gz`` are returned whole.
        """
        suffixes = [s.lower() for s in self.path.suffixes]
        if len(suffixes) >= 2 and suffixes[-2] == ".tar":
            return f"tar{suffixes[-1]}"
        return self.path.suffix.lower().lstrip(".")

    def open_input(self) -> BinaryIO:
        """Open the file for binary reading."""
        return open(self.path, "rb")

    def open_output(self) -> BinaryIO:
        """Open the file for binary writing, creating parent directories."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return open(self.path, "wb")


@dataclass(frozen=True, slots=True)
class Directory(Location):
    """Handle to a (possibly absent) directory."""

    def children(self) -> list[Location]:
        """List direct children in directory-listing order.

        Raises:
            OSError: If the directory cannot be read.
        """
        entries: list[Location] = []
        with os.scandir(self.path) as it:
            for entry in it:
                child = self.path / entry.name
                if entry.is_dir(follow_symlinks=False):
                    entries.append(Directory(child))
                else:
                    entries.append(File(child))
        return entries

    def is_empty(self) -> bool:
        """Check whether the directory has no entries."""
        with os.scandir(self.path) as it:
            return next(it, None) is None

    def file(self, relative: str | os.PathLike[str]) -> File:
        """Locate a file below this directory."""
        return File(self.path / relative)

    def directory(self, relative: str | os.PathLike[str]) -> "Directory":
        """Locate a directory below this directory."""
        return Directory(self.path / relative)

    def create(self) -> "Directory":
        """Create the directory and any missing parents."""
        self.path.mkdir(parents=True, exist_ok=True)
        return self


def locate(path: str | os.PathLike[str] | Location) -> Location:
    """Build a File or Directory handle for whatever is at ``path`` now.

    Absent paths are located as files.

    Args:
        path: Path to locate, or an existing handle which is returned as is.

    Returns:
        Directory if the path is a real directory, File otherwise.
    """
    if isinstance(path, Location):
        return path
    target = Path(path)
    if target.is_dir() and not target.is_symlink():
        return Directory(target)
    return File(target)
