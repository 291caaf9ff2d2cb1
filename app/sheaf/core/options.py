"""Immutable traversal filters.

A FilterSet carries everything a traversal needs to decide which entries
to touch and where they land: glob patterns, an optional predicate, a depth
limit, whether the traversal root itself is part of the result, and an
optional relocation directory below the destination.

FilterSets are never modified. Builder methods return refined copies and
:func:`compose` layers one FilterSet on top of another. Every layer's
patterns must be satisfied, so composition narrows a selection and never
widens it.
"""

import os
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from functools import reduce
from pathlib import Path, PurePosixPath

from sheaf.core.errors import ConfigurationError
from sheaf.core.patterns import Pattern, compile_patterns, select

Predicate = Callable[[Path, os.stat_result], bool]


@dataclass(frozen=True, slots=True)
class FilterSet:
    """Composable filter configuration for one traversal.

    Attributes:
        pattern_groups: One group of patterns per composed layer. A path must
            be selected by every group; inside a group the usual
            include/exclude rule applies.
        predicate: Optional test on the entry path and its metadata.
        max_depth: Deepest level to visit below the root (None = unbounded).
        include_root: Whether the root directory is part of the destination
            layout. None means "not specified" and behaves like True.
        relocate_under: Relative directory inserted below the destination.
    """

    pattern_groups: tuple[tuple[Pattern, ...], ...] = ()
    predicate: Predicate | None = field(default=None, compare=False)
    max_depth: int | None = None
    include_root: bool | None = None
    relocate_under: PurePosixPath | None = None

    def __post_init__(self) -> None:
        """Validate depth and relocation path."""
        if self.max_depth is not None and self.max_depth < 0:
            msg = f"Depth must be zero or positive, got {self.max_depth}"
            raise ConfigurationError(msg)
        if self.relocate_under is not None and self.relocate_under.is_absolute():
            msg = f"Only a relative path is acceptable for relocation: {self.relocate_under}"
            raise ConfigurationError(msg)

    @classmethod
    def of(cls, *patterns: str | None) -> "FilterSet":
        """Build a FilterSet holding a single group of glob patterns."""
        return cls().glob(*patterns)

    @property
    def patterns(self) -> tuple[Pattern, ...]:
        """All patterns of all layers in composition order."""
        return tuple(p for group in self.pattern_groups for p in group)

    @property
    def accepts_root(self) -> bool:
        """Whether the traversal root is kept in destination paths."""
        return self.include_root is not False

    @property
    def has_includes(self) -> bool:
        """Whether any layer restricts the selection with include patterns."""
        return any(not p.exclude for p in self.patterns)

    def depth(self, depth: int) -> "FilterSet":
        """Limit how deep below the root the traversal goes.

        Depth 1 visits only direct children. Combined with an existing limit
        the smaller one wins.
        """
        return compose(self, FilterSet(max_depth=depth))

    def glob(self, *patterns: str | None) -> "FilterSet":
        """Add glob patterns to the most recent layer.

        Patterns passed in one or several ``glob`` calls on the same value are
        alternatives: a path needs to match any one include of the layer.
        """
        compiled = compile_patterns(patterns)
        if not compiled:
            return self
        if not self.pattern_groups:
            return replace(self, pattern_groups=(compiled,))
        *head, last = self.pattern_groups
        merged = last + tuple(p for p in compiled if p not in last)
        return replace(self, pattern_groups=(*head, merged))

    def take(self, predicate: Predicate | None) -> "FilterSet":
        """Require entries to also pass ``predicate(path, stat)``."""
        if predicate is None:
            return self
        return compose(self, FilterSet(predicate=predicate))

    def ignore_root(self) -> "FilterSet":
        """Place the root's children directly in the destination.

        Normally ``src/a`` copied to ``out`` lands in ``out/src/a``; with the
        root ignored it lands in ``out/a``.
        """
        return replace(self, include_root=False)

    def allocate_in(self, relative: str | os.PathLike[str] | None) -> "FilterSet":
        """Place everything under ``relative`` inside the destination.

        Raises:
            ConfigurationError: If ``relative`` is absolute.
        """
        location = to_relative(relative)
        if location is None:
            return self
        return compose(self, FilterSet(relocate_under=location))

    def accepts(self, relative: PurePosixPath, path: Path) -> bool:
        """Check whether an entry passes every pattern layer and the predicate.

        Args:
            relative: Entry path relative to the traversal root.
            path: Real filesystem path, handed to the predicate.

        Raises:
            OSError: If the predicate needs metadata that cannot be read.
        """
        for group in self.pattern_groups:
            if not select(group, relative):
                return False
        if self.predicate is not None:
            return self.predicate(path, path.lstat())
        return True


def to_relative(relative: str | os.PathLike[str] | None) -> PurePosixPath | None:
    """Normalize a relocation path.

    Returns:
        PurePosixPath, or None when ``relative`` is empty or None.

    Raises:
        ConfigurationError: If the path is absolute.
    """
    if relative is None:
        return None
    native = Path(relative)
    if native.is_absolute() or native.anchor:
        msg = f"Only a relative path is acceptable for relocation: {relative}"
        raise ConfigurationError(msg)
    location = PurePosixPath(native.as_posix())
    if location == PurePosixPath("."):
        return None
    return location


def compose(base: FilterSet, overlay: FilterSet, *more: FilterSet) -> FilterSet:
    """Layer FilterSets, outermost first.

    Pattern layers are concatenated, predicates are ANDed, the smaller depth
    wins, an explicit ``include_root`` in the overlay overrides the base, and
    relocations nest: the overlay's directory goes below the base's.

    Args:
        base: Outer layer.
        overlay: Inner layer.
        *more: Further inner layers, applied left to right.

    Returns:
        New FilterSet. Neither input is modified.
    """
    if more:
        return reduce(compose, more, compose(base, overlay))

    return FilterSet(
        pattern_groups=base.pattern_groups + overlay.pattern_groups,
        predicate=_both(base.predicate, overlay.predicate),
        max_depth=_shallowest(base.max_depth, overlay.max_depth),
        include_root=base.include_root if overlay.include_root is None else overlay.include_root,
        relocate_under=_nest(base.relocate_under, overlay.relocate_under),
    )


def _both(first: Predicate | None, second: Predicate | None) -> Predicate | None:
    if first is None:
        return second
    if second is None:
        return first

    def combined(path: Path, attributes: os.stat_result) -> bool:
        return first(path, attributes) and second(path, attributes)

    return combined


def _shallowest(first: int | None, second: int | None) -> int | None:
    if first is None:
        return second
    if second is None:
        return first
    return min(first, second)


def _nest(outer: PurePosixPath | None, inner: PurePosixPath | None) -> PurePosixPath | None:
    if outer is None:
        return inner
    if inner is None:
        return outer
    return outer / inner
