"""Bulk-action capability objects.

An Operation knows how to delete, copy, move, pack and walk one
contribution to a Folder. The four variants cover a single file, a filtered
directory subtree, a relocated operation and an operation with an extra
filter layer. Every method receives the FilterSet of the call site and
composes it with whatever the operation stores, outer layer first.

All methods return lazy iterators of the source locations acted upon.
Nothing is touched until the iterator is consumed.
"""

import logging
import shutil
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path, PurePosixPath

from sheaf.core.archive import ArchiveSink
from sheaf.core.errors import DestinationConflictError, TraversalIOError
from sheaf.core.locations import Directory, File, Location
from sheaf.core.options import FilterSet, compose, to_relative
from sheaf.core.walker import TreeWalker, WalkEntry, WalkMode, check_ancestors

logger = logging.getLogger(__name__)


class Operation(ABC):
    """Shared contract of everything a Folder holds."""

    @abstractmethod
    def entries(self) -> list[Location]:
        """Top-level locations this operation was built from."""

    @abstractmethod
    def walk(
        self,
        filters: FilterSet,
        cancel: threading.Event | None = None,
    ) -> Iterator[WalkEntry]:
        """Yield (base directory, location) for every selected entry."""

    @abstractmethod
    def delete(
        self,
        filters: FilterSet,
        cancel: threading.Event | None = None,
    ) -> Iterator[Location]:
        """Delete selected entries."""

    @abstractmethod
    def copy_to(
        self,
        destination: Directory,
        filters: FilterSet,
        cancel: threading.Event | None = None,
    ) -> Iterator[Location]:
        """Copy selected entries below ``destination``."""

    @abstractmethod
    def move_to(
        self,
        destination: Directory,
        filters: FilterSet,
        cancel: threading.Event | None = None,
    ) -> Iterator[Location]:
        """Move selected entries below ``destination``."""

    @abstractmethod
    def pack_to(
        self,
        sink: ArchiveSink,
        filters: FilterSet,
        cancel: threading.Event | None = None,
    ) -> Iterator[File]:
        """Append selected files to an open archive."""


class FileOperation(Operation):
    """Operation on exactly one file.

    Patterns and the predicate are matched against the file name. A file
    that does not exist when the action runs is silently skipped.
    """

    def __init__(self, file: File, filters: FilterSet | None = None) -> None:
        self.file = file
        self.filters = filters or FilterSet()

    def __repr__(self) -> str:
        return f"FileOperation({self.file})"

    def entries(self) -> list[Location]:
        return [self.file]

    def _selected(self, filters: FilterSet, cancel: threading.Event | None) -> FilterSet | None:
        """Return the effective filters if the file takes part, else None."""
        if cancel is not None and cancel.is_set():
            return None
        if not self.file.exists() or self.file.is_directory():
            return None
        combined = compose(filters, self.filters)
        try:
            accepted = combined.accepts(PurePosixPath(self.file.name), self.file.path)
        except OSError as e:
            raise TraversalIOError(self.file.path, e) from e
        return combined if accepted else None

    def _target(self, destination: Directory, filters: FilterSet) -> Path:
        target = destination.path
        if target.exists() and not target.is_dir():
            raise DestinationConflictError(self.file.path, target)
        if filters.relocate_under is not None:
            target = target / filters.relocate_under
        target = target / self.file.name
        if target.is_dir() and not target.is_symlink():
            raise DestinationConflictError(self.file.path, target)
        check_ancestors(self.file.path, target, destination.path)
        return target

    def walk(self, filters, cancel=None):
        if self._selected(filters, cancel) is not None:
            yield self.file.parent, self.file

    def delete(self, filters, cancel=None):
        if self._selected(filters, cancel) is None:
            return
        try:
            self.file.path.unlink(missing_ok=True)
        except OSError as e:
            raise TraversalIOError(self.file.path, e) from e
        logger.debug("Deleted %s", self.file)
        yield self.file

    def copy_to(self, destination, filters, cancel=None):
        combined = self._selected(filters, cancel)
        if combined is None:
            return
        target = self._target(destination, combined)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self.file.path, target, follow_symlinks=False)
        except OSError as e:
            raise TraversalIOError(self.file.path, e) from e
        logger.debug("Copied %s -> %s", self.file, target)
        yield self.file

    def move_to(self, destination, filters, cancel=None):
        combined = self._selected(filters, cancel)
        if combined is None:
            return
        target = self._target(destination, combined)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(self.file.path, target)
        except OSError as e:
            raise TraversalIOError(self.file.path, e) from e
        logger.debug("Moved %s -> %s", self.file, target)
        yield self.file

    def pack_to(self, sink, filters, cancel=None):
        combined = self._selected(filters, cancel)
        if combined is None:
            return
        name = PurePosixPath(self.file.name)
        if combined.relocate_under is not None:
            name = combined.relocate_under / name
        if sink.add(name, self.file):
            yield self.file


class DirectoryOperation(Operation):
    """Operation on a directory subtree filtered by a stored FilterSet."""

    def __init__(self, directory: Directory, filters: FilterSet | None = None) -> None:
        self.directory = directory
        self.filters = filters or FilterSet()

    def __repr__(self) -> str:
        return f"DirectoryOperation({self.directory})"

    def entries(self) -> list[Location]:
        return [self.directory]

    def _walker(
        self,
        filters: FilterSet,
        mode: WalkMode,
        destination: Directory | None = None,
        cancel: threading.Event | None = None,
    ) -> TreeWalker:
        return TreeWalker(
            self.directory,
            compose(filters, self.filters),
            mode,
            destination=destination,
            cancel=cancel,
        )

    def walk(self, filters, cancel=None):
        return self._walker(filters, WalkMode.COLLECT, cancel=cancel).walk()

    def delete(self, filters, cancel=None):
        for _, location in self._walker(filters, WalkMode.DELETE, cancel=cancel).walk():
            yield location

    def copy_to(self, destination, filters, cancel=None):
        walker = self._walker(filters, WalkMode.COPY, destination, cancel)
        for _, location in walker.walk():
            yield location

    def move_to(self, destination, filters, cancel=None):
        walker = self._walker(filters, WalkMode.MOVE, destination, cancel)
        for _, location in walker.walk():
            yield location

    def pack_to(self, sink, filters, cancel=None):
        combined = compose(filters, self.filters)
        # entry names keep the root directory's own name unless it is ignored
        base = self.directory.parent if combined.accepts_root else self.directory
        prefix = combined.relocate_under or PurePosixPath()

        walker = TreeWalker(self.directory, combined, WalkMode.COLLECT, cancel=cancel)
        for _, location in walker.walk():
            if not isinstance(location, File):
                continue
            if sink.add(prefix / location.relative_to(base), location):
                yield location


class RelocatedOperation(Operation):
    """Places another operation's output below a relative directory.

    Copy, move and pack targets gain the relative directory as prefix;
    delete and walk are passed through untouched.
    """

    def __init__(self, operation: Operation, relative: str | PurePosixPath) -> None:
        self.operation = operation
        self.relocation = FilterSet(relocate_under=to_relative(relative))

    def __repr__(self) -> str:
        return f"RelocatedOperation({self.operation!r}, {self.relocation.relocate_under})"

    def entries(self) -> list[Location]:
        return self.operation.entries()

    def walk(self, filters, cancel=None):
        return self.operation.walk(filters, cancel)

    def delete(self, filters, cancel=None):
        return self.operation.delete(filters, cancel)

    def copy_to(self, destination, filters, cancel=None):
        return self.operation.copy_to(destination, compose(filters, self.relocation), cancel)

    def move_to(self, destination, filters, cancel=None):
        return self.operation.move_to(destination, compose(filters, self.relocation), cancel)

    def pack_to(self, sink, filters, cancel=None):
        return self.operation.pack_to(sink, compose(filters, self.relocation), cancel)


class LayeredOperation(Operation):
    """Adds an extra FilterSet layer in front of another operation."""

    def __init__(self, operation: Operation, overlay: FilterSet) -> None:
        self.operation = operation
        self.overlay = overlay

    def __repr__(self) -> str:
        return f"LayeredOperation({self.operation!r})"

    def entries(self) -> list[Location]:
        return self.operation.entries()

    def walk(self, filters, cancel=None):
        return self.operation.walk(compose(filters, self.overlay), cancel)

    def delete(self, filters, cancel=None):
        return self.operation.delete(compose(filters, self.overlay), cancel)

    def copy_to(self, destination, filters, cancel=None):
        return self.operation.copy_to(destination, compose(filters, self.overlay), cancel)

    def move_to(self, destination, filters, cancel=None):
        return self.operation.move_to(destination, compose(filters, self.overlay), cancel)

    def pack_to(self, sink, filters, cancel=None):
        return self.operation.pack_to(sink, compose(filters, self.overlay), cancel)
