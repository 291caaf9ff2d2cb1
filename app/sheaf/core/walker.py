"""Depth-bounded directory walker.

One TreeWalker performs one depth-first descent below a root directory.
Every entry is tested against the walker's FilterSet using its path
relative to the root. Depending on the mode, selected entries are only
reported, or also copied, moved or deleted while the walk proceeds.

The walk is a generator: nothing happens until the caller pulls results,
and each pull does just enough work to produce the next entry. Errors are
raised immediately as TraversalIOError and leave earlier changes in place.
"""

import logging
import shutil
import threading
from collections.abc import Iterator
from enum import Enum
from pathlib import Path

from sheaf.core.errors import ConfigurationError, DestinationConflictError, TraversalIOError
from sheaf.core.locations import Directory, File, Location
from sheaf.core.options import FilterSet

logger = logging.getLogger(__name__)

# (traversal root, selected entry)
WalkEntry = tuple[Directory, Location]


def check_ancestors(source: Path, target: Path, stop: Path) -> None:
    """Refuse a target whose path below ``stop`` runs through a plain file.

    Raises:
        DestinationConflictError: If an existing ancestor of ``target`` inside
            ``stop`` is not a directory.
    """
    for ancestor in target.parents:
        if ancestor == stop or not ancestor.is_relative_to(stop):
            return
        if (ancestor.exists() or ancestor.is_symlink()) and not ancestor.is_dir():
            raise DestinationConflictError(source, ancestor)


class WalkMode(str, Enum):
    """Action performed on every selected entry.

    Attributes:
        COLLECT: Only report entries.
        COPY: Copy entries to the destination, replacing existing files.
        MOVE: Move entries to the destination, replacing existing files.
        DELETE: Delete entries, children before their directory.
    """

    COLLECT = "collect"
    COPY = "copy"
    MOVE = "move"
    DELETE = "delete"

    @property
    def relocates(self) -> bool:
        """Whether this mode writes to a destination."""
        return self in (WalkMode.COPY, WalkMode.MOVE)


class TreeWalker:
    """Walks one directory tree and applies one mode to selected entries.

    A walker serves exactly one traversal. Cancellation is cooperative:
    :meth:`cancel` (or setting the shared ``cancel`` event) makes the walk
    stop before its next step.

    Args:
        root: Directory to traverse. A missing root yields nothing.
        filters: Selection, depth, root handling and relocation.
        mode: What to do with selected entries.
        destination: Target directory, required for COPY and MOVE.
        cancel: Optional event shared with other walkers of the same call.
    """

    def __init__(
        self,
        root: Directory,
        filters: FilterSet | None = None,
        mode: WalkMode = WalkMode.COLLECT,
        destination: Directory | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        if mode.relocates and destination is None:
            msg = f"A destination directory is required to {mode.value} {root}"
            raise ConfigurationError(msg)

        self._root = root
        self._filters = filters or FilterSet()
        self._mode = mode
        self._destination = destination
        self._cancel = cancel or threading.Event()
        self._started = False
        self._target_root = self._resolve_target_root()

    @property
    def cancelled(self) -> bool:
        """Whether the walk has been asked to stop."""
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Ask the walk to stop before its next step."""
        self._cancel.set()

    def walk(self) -> Iterator[WalkEntry]:
        """Start the traversal.

        Returns:
            Lazy iterator of (root, entry) pairs for every selected entry
            that the mode acted upon.

        Raises:
            RuntimeError: If this walker has already been started.
        """
        if self._started:
            msg = "A TreeWalker can only be walked once"
            raise RuntimeError(msg)
        self._started = True
        return self._run()

    def _resolve_target_root(self) -> Path | None:
        if self._destination is None or not self._mode.relocates:
            return None

        target = self._destination.path
        if self._filters.relocate_under is not None:
            target = target / self._filters.relocate_under
        if self._filters.accepts_root:
            target = target / self._root.name

        source = self._root.path.resolve()
        if target.resolve().is_relative_to(source):
            msg = f"Cannot {self._mode.value} {self._root} into itself ({target})"
            raise ConfigurationError(msg)
        return target

    def _run(self) -> Iterator[WalkEntry]:
        root = self._root
        if not root.is_directory():
            logger.debug("Nothing to %s, directory is absent: %s", self._mode.value, root)
            return

        if self._destination is not None and self._mode.relocates:
            destination = self._destination.path
            if destination.exists() and not destination.is_dir():
                raise DestinationConflictError(root.path, destination)

        # the root itself only takes part when the selection is unrestricted
        root_selected = self._filters.accepts_root and not self._filters.has_includes

        if root_selected and self._target_root is not None:
            self._make_directory(root, self._target_root)
            if self._mode is WalkMode.COPY:
                yield root, root

        yield from self._descend(root, 1)

        if self.cancelled:
            return
        if root_selected and self._mode in (WalkMode.MOVE, WalkMode.DELETE):
            if self._remove_if_empty(root):
                yield root, root

    def _descend(self, directory: Directory, depth: int) -> Iterator[WalkEntry]:
        max_depth = self._filters.max_depth
        if self.cancelled or (max_depth is not None and depth > max_depth):
            return

        try:
            children = directory.children()
        except OSError as e:
            raise TraversalIOError(directory.path, e) from e

        for child in children:
            if self.cancelled:
                return

            relative = child.relative_to(self._root)
            try:
                selected = self._filters.accepts(relative, child.path)
            except OSError as e:
                raise TraversalIOError(child.path, e) from e

            if isinstance(child, Directory):
                yield from self._visit_directory(child, selected, depth)
            elif selected:
                self._apply_file(child)
                yield self._root, child

    def _visit_directory(
        self,
        directory: Directory,
        selected: bool,
        depth: int,
    ) -> Iterator[WalkEntry]:
        if selected and self._target_root is not None:
            self._make_directory(directory, self._target_for(directory))
        if selected and self._mode in (WalkMode.COLLECT, WalkMode.COPY):
            yield self._root, directory

        yield from self._descend(directory, depth + 1)

        if not selected or self.cancelled:
            return
        # a directory with unselected entries left in it stays where it is
        if self._mode in (WalkMode.MOVE, WalkMode.DELETE) and self._remove_if_empty(directory):
            yield self._root, directory

    def _target_for(self, location: Location) -> Path:
        assert self._target_root is not None
        return self._target_root / location.relative_to(self._root)

    def _apply_file(self, file: File) -> None:
        source = file.path
        try:
            if self._mode is WalkMode.DELETE:
                source.unlink(missing_ok=True)
                logger.debug("Deleted %s", source)
                return
            if self._mode is WalkMode.COLLECT:
                return

            target = self._target_for(file)
            if target.is_dir() and not target.is_symlink():
                raise DestinationConflictError(source, target)
            self._check_ancestors(source, target)
            target.parent.mkdir(parents=True, exist_ok=True)

            if self._mode is WalkMode.COPY:
                shutil.copy2(source, target, follow_symlinks=False)
                logger.debug("Copied %s -> %s", source, target)
            else:
                shutil.move(source, target)
                logger.debug("Moved %s -> %s", source, target)
        except OSError as e:
            raise TraversalIOError(source, e) from e

    def _make_directory(self, source: Directory, target: Path) -> None:
        if (target.exists() or target.is_symlink()) and not target.is_dir():
            raise DestinationConflictError(source.path, target)
        self._check_ancestors(source.path, target)
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise TraversalIOError(target, e) from e

    def _check_ancestors(self, source: Path, target: Path) -> None:
        assert self._destination is not None
        check_ancestors(source, target, self._destination.path)

    def _remove_if_empty(self, directory: Directory) -> bool:
        try:
            if not directory.is_empty():
                logger.debug("Keeping non-empty directory %s", directory)
                return False
            directory.path.rmdir()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise TraversalIOError(directory.path, e) from e
        logger.debug("Removed directory %s", directory)
        return True
