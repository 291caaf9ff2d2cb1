"""Virtual folders combining files, directory subtrees and other folders.

A Folder is an ordered list of operations forming one namespace. Bulk
actions fan out over the operations in insertion order and stream their
results back as one lazy iterator; the eager variants drive that iterator
to completion and return what was affected.

Example:
    Copy a jar and the jars of a dependency directory into one layout::

        folder = Folder().add("build/app.jar").add_in("lib", lambda f: f.add("deps", "*.jar"))
        folder.copy_all_to("dist")  # dist/app.jar, dist/lib/deps/*.jar
"""

import itertools
import logging
import os
import threading
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from sheaf.core.archive import open_archive
from sheaf.core.locations import Directory, File, Location, locate
from sheaf.core.operations import (
    DirectoryOperation,
    FileOperation,
    LayeredOperation,
    Operation,
    RelocatedOperation,
)
from sheaf.core.options import FilterSet, compose
from sheaf.core.walker import WalkEntry

logger = logging.getLogger(__name__)

Target = str | os.PathLike[str] | Directory


def _call_site(patterns: tuple[str | None, ...], filters: FilterSet | None) -> FilterSet:
    """Merge call-site patterns and an explicit FilterSet into one value."""
    selection = FilterSet.of(*patterns)
    if filters is None:
        return selection
    if not selection.pattern_groups:
        return filters
    return compose(filters, selection)


def _as_directory(target: Target) -> Directory:
    if isinstance(target, Directory):
        return target
    return Directory(Path(target))


def _as_file(target: str | os.PathLike[str] | File) -> File:
    if isinstance(target, File):
        return target
    return File(Path(target))


class Folder:
    """Ordered collection of operations acting as one virtual directory."""

    def __init__(self, operations: Iterable[Operation] = ()) -> None:
        self._operations: list[Operation] = list(operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __repr__(self) -> str:
        return f"Folder({self._operations!r})"

    @property
    def operations(self) -> list[Operation]:
        """Operations in insertion order (a copy)."""
        return list(self._operations)

    def add(
        self,
        entry: "str | os.PathLike[str] | Location | Folder | None",
        *patterns: str | None,
        filters: FilterSet | None = None,
    ) -> "Folder":
        """Add a file, a directory subtree or another folder.

        Args:
            entry: Path (located on disk now), File, Directory or Folder.
                None is ignored.
            *patterns: Glob patterns restricting what the entry contributes.
            filters: Additional FilterSet for the entry, e.g. with a depth
                limit, a predicate or ``ignore_root()``.

        Returns:
            This folder, for chaining.

        Raises:
            ConfigurationError: If a pattern is malformed.
        """
        if entry is None:
            return self

        overlay = _call_site(patterns, filters)
        if isinstance(entry, Folder):
            if not patterns and filters is None:
                self._operations.extend(entry._operations)
            else:
                self._operations.extend(LayeredOperation(op, overlay) for op in entry._operations)
            return self

        location = locate(entry)
        if isinstance(location, Directory):
            self._operations.append(DirectoryOperation(location, overlay))
        else:
            self._operations.append(FileOperation(location, overlay))
        logger.debug("Added %s to folder", location)
        return self

    def add_all(self, entries: Iterable["str | os.PathLike[str] | Location | Folder | None"]) -> "Folder":
        """Add several entries without filters."""
        for entry in entries:
            self.add(entry)
        return self

    def add_in(
        self,
        relative: str | os.PathLike[str],
        builder: Callable[["Folder"], object],
    ) -> "Folder":
        """Add entries whose output lands below a relative directory.

        ``builder`` receives a fresh Folder to populate. Every operation it
        adds is copied, moved or packed into ``relative`` inside the final
        destination.

        Raises:
            ConfigurationError: If ``relative`` is absolute.
        """
        nested = Folder()
        builder(nested)
        self._operations.extend(RelocatedOperation(op, relative) for op in nested._operations)
        return self

    def entries(self) -> list[Location]:
        """Locations this folder was built from, in insertion order."""
        return [location for op in self._operations for location in op.entries()]

    # lazy actions

    def iter_delete(
        self,
        *patterns: str | None,
        filters: FilterSet | None = None,
        cancel: threading.Event | None = None,
    ) -> Iterator[Location]:
        """Delete selected entries lazily, yielding each deleted location."""
        call = _call_site(patterns, filters)
        return itertools.chain.from_iterable(op.delete(call, cancel) for op in self._operations)

    def iter_copy_to(
        self,
        destination: Target,
        *patterns: str | None,
        filters: FilterSet | None = None,
        cancel: threading.Event | None = None,
    ) -> Iterator[Location]:
        """Copy selected entries lazily, yielding each copied source location."""
        target = _as_directory(destination)
        call = _call_site(patterns, filters)
        return itertools.chain.from_iterable(
            op.copy_to(target, call, cancel) for op in self._operations
        )

    def iter_move_to(
        self,
        destination: Target,
        *patterns: str | None,
        filters: FilterSet | None = None,
        cancel: threading.Event | None = None,
    ) -> Iterator[Location]:
        """Move selected entries lazily, yielding each moved source location."""
        target = _as_directory(destination)
        call = _call_site(patterns, filters)
        return itertools.chain.from_iterable(
            op.move_to(target, call, cancel) for op in self._operations
        )

    def iter_pack_to(
        self,
        archive: str | os.PathLike[str] | File,
        *patterns: str | None,
        filters: FilterSet | None = None,
        cancel: threading.Event | None = None,
    ) -> Iterator[File]:
        """Pack selected files into one archive lazily.

        The archive is opened on the first ``next()`` and finalized when the
        iterator is exhausted or closed.

        Raises:
            ConfigurationError: If the archive extension is unsupported.
        """
        sink = open_archive(_as_file(archive))
        call = _call_site(patterns, filters)

        def packing() -> Iterator[File]:
            with sink:
                for op in self._operations:
                    yield from op.pack_to(sink, call, cancel)
            logger.debug("Packed %d entries into %s", sink.count, sink.archive)

        return packing()

    # eager actions

    def delete_all(self, *patterns: str | None, filters: FilterSet | None = None) -> list[Location]:
        """Delete selected entries now.

        Returns:
            Deleted locations.
        """
        return list(self.iter_delete(*patterns, filters=filters))

    def copy_all_to(
        self,
        destination: Target,
        *patterns: str | None,
        filters: FilterSet | None = None,
    ) -> list[Location]:
        """Copy selected entries now.

        Returns:
            Source locations that were copied.
        """
        return list(self.iter_copy_to(destination, *patterns, filters=filters))

    def move_all_to(
        self,
        destination: Target,
        *patterns: str | None,
        filters: FilterSet | None = None,
    ) -> list[Location]:
        """Move selected entries now.

        Returns:
            Source locations that were moved.
        """
        return list(self.iter_move_to(destination, *patterns, filters=filters))

    def pack_all_to(
        self,
        archive: str | os.PathLike[str] | File,
        *patterns: str | None,
        filters: FilterSet | None = None,
    ) -> list[File]:
        """Pack selected files now.

        Returns:
            Files written to the archive.
        """
        return list(self.iter_pack_to(archive, *patterns, filters=filters))

    # walks

    def walk_with_base(
        self,
        *patterns: str | None,
        filters: FilterSet | None = None,
        cancel: threading.Event | None = None,
    ) -> Iterator[WalkEntry]:
        """Yield (base directory, location) for every selected entry."""
        call = _call_site(patterns, filters)
        return itertools.chain.from_iterable(op.walk(call, cancel) for op in self._operations)

    def walk_all(self, *patterns: str | None, filters: FilterSet | None = None) -> Iterator[Location]:
        """Yield every selected file and directory."""
        return (location for _, location in self.walk_with_base(*patterns, filters=filters))

    def walk_files(self, *patterns: str | None, filters: FilterSet | None = None) -> Iterator[File]:
        """Yield every selected file."""
        return (loc for loc in self.walk_all(*patterns, filters=filters) if isinstance(loc, File))

    def walk_directories(
        self,
        *patterns: str | None,
        filters: FilterSet | None = None,
    ) -> Iterator[Directory]:
        """Yield every selected directory."""
        return (
            loc for loc in self.walk_all(*patterns, filters=filters) if isinstance(loc, Directory)
        )
