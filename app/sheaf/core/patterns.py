"""Glob pattern matching over root-relative paths.

Patterns are split on ``/`` and matched segment by segment:

- ``*`` matches any run of characters inside one segment
- ``?`` matches exactly one character
- ``[abc]``, ``[a-c]`` and ``[!abc]`` match one character of (or not of) a set
- ``**`` as a whole segment matches zero or more whole segments

A leading ``!`` turns the whole pattern into an exclude pattern. A list of
patterns selects a path when it matches at least one include (or there are
no includes) and matches no exclude, so ``["!build/**"]`` alone means
"everything except build".
"""

import fnmatch
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import PurePath

from sheaf.core.errors import ConfigurationError

RECURSIVE = "**"
NEGATION = "!"

_STAR_RUN = re.compile(r"\*{2,}")


@dataclass(frozen=True, slots=True)
class Pattern:
    """A compiled glob pattern.

    Attributes:
        source: The pattern text as written, including any leading ``!``.
        segments: Normalized path segments to match against.
        exclude: True if the pattern deselects the paths it matches.
    """

    source: str
    segments: tuple[str, ...]
    exclude: bool

    def matches(self, relative_path: str | PurePath) -> bool:
        """Check whether the path matches this pattern, ignoring negation.

        Args:
            relative_path: Slash-separated path relative to the traversal root.

        Returns:
            True if every segment of the path is consumed by the pattern.
        """
        return _match_segments(self.segments, _split_path(relative_path), 0, 0)

    def __str__(self) -> str:
        return self.source


def compile_pattern(text: str) -> Pattern:
    """Parse a glob pattern.

    Args:
        text: Pattern text, optionally starting with ``!``.

    Returns:
        Immutable compiled Pattern.

    Raises:
        ConfigurationError: If the pattern is empty or has an unterminated
            character class.
    """
    exclude = text.startswith(NEGATION)
    body = text[1:] if exclude else text

    segments: list[str] = []
    for raw in body.split("/"):
        if not raw:
            continue
        _check_brackets(raw, text)
        for segment in _expand_segment(raw):
            # consecutive ** segments are equivalent to a single one
            if segment == RECURSIVE and segments and segments[-1] == RECURSIVE:
                continue
            segments.append(segment)

    if not segments:
        msg = f"Empty glob pattern: {text!r}"
        raise ConfigurationError(msg)

    return Pattern(source=text, segments=tuple(segments), exclude=exclude)


def compile_patterns(texts: Iterable[str | None]) -> tuple[Pattern, ...]:
    """Compile several patterns, skipping ``None`` and duplicates.

    Args:
        texts: Pattern strings in the order given by the caller.

    Returns:
        Tuple of compiled patterns, first occurrence order preserved.
    """
    seen: set[str] = set()
    compiled: list[Pattern] = []
    for text in texts:
        if text is None or text in seen:
            continue
        seen.add(text)
        compiled.append(compile_pattern(text))
    return tuple(compiled)


def select(patterns: Sequence[Pattern], relative_path: str | PurePath) -> bool:
    """Apply the include/exclude rule of a pattern list to a path.

    Args:
        patterns: Compiled patterns, includes and excludes mixed.
        relative_path: Path relative to the traversal root.

    Returns:
        True if the path passes both the include and the exclude stage.
    """
    parts = _split_path(relative_path)
    includes = [p for p in patterns if not p.exclude]
    excludes = [p for p in patterns if p.exclude]

    if any(_match_segments(p.segments, parts, 0, 0) for p in excludes):
        return False
    return not includes or any(_match_segments(p.segments, parts, 0, 0) for p in includes)


def match(relative_path: str | PurePath, patterns: Iterable[str | Pattern]) -> bool:
    """Convenience wrapper around :func:`select` accepting pattern strings.

    Args:
        relative_path: Path relative to the traversal root.
        patterns: Pattern strings or already compiled patterns.

    Returns:
        True if the path is selected by the pattern list.
    """
    compiled = [p if isinstance(p, Pattern) else compile_pattern(p) for p in patterns]
    return select(compiled, relative_path)


def _split_path(path: str | PurePath) -> tuple[str, ...]:
    if isinstance(path, PurePath):
        return tuple(part for part in path.parts if part not in ("", "."))
    return tuple(part for part in path.split("/") if part not in ("", "."))


def _expand_segment(segment: str) -> list[str]:
    """Rewrite a segment containing ``**`` into plain segments.

    ``**text`` becomes ``**`` followed by ``*text`` and ``lib**`` becomes
    ``lib*`` followed by ``**``. Any other ``**`` run stays inside its
    segment and acts as ``*``.
    """
    if segment == RECURSIVE or RECURSIVE not in segment:
        return [segment]

    expanded: list[str] = []
    if segment.startswith(RECURSIVE):
        expanded.append(RECURSIVE)
    expanded.append(_STAR_RUN.sub("*", segment))
    if segment.endswith(RECURSIVE):
        expanded.append(RECURSIVE)
    return expanded


def _check_brackets(segment: str, text: str) -> None:
    index = 0
    length = len(segment)
    while index < length:
        if segment[index] != "[":
            index += 1
            continue
        start = index + 1
        if start < length and segment[start] == "!":
            start += 1
        # a ] right after the opening bracket is a literal member of the set
        if start < length and segment[start] == "]":
            start += 1
        close = segment.find("]", start)
        if close < 0:
            msg = f"Unterminated character class in glob pattern: {text!r}"
            raise ConfigurationError(msg)
        index = close + 1


def _match_segments(
    segments: tuple[str, ...],
    parts: tuple[str, ...],
    i: int,
    j: int,
) -> bool:
    while i < len(segments):
        segment = segments[i]
        if segment == RECURSIVE:
            if i + 1 == len(segments):
                return True
            return any(
                _match_segments(segments, parts, i + 1, k) for k in range(j, len(parts) + 1)
            )
        if j >= len(parts) or not fnmatch.fnmatchcase(parts[j], segment):
            return False
        i += 1
        j += 1
    return j == len(parts)
