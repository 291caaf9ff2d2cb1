"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

TreeFactory = Callable[..., Path]


def _build(root: Path, entries: tuple[str, ...]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for entry in entries:
        if entry.endswith("/"):
            (root / entry).mkdir(parents=True, exist_ok=True)
            continue
        path = root / entry
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(entry)
    return root


def _listing(root: Path) -> set[str]:
    return {p.relative_to(root).as_posix() for p in root.rglob("*")}


@pytest.fixture
def tree(tmp_path: Path) -> TreeFactory:
    """Factory creating a directory tree below tmp_path.

    ``tree("in", "file", "dir/text", "empty/")`` creates ``tmp_path/in`` with
    two files and an empty directory (names ending in ``/``). Each file
    contains its own relative path.
    """

    def factory(name: str, *entries: str) -> Path:
        return _build(tmp_path / name, entries)

    return factory


@pytest.fixture
def listing() -> Callable[[Path], set[str]]:
    """Function returning every path below a directory, relative and slash-separated."""
    return _listing


@pytest.fixture
def sample_tree(tree: TreeFactory) -> Path:
    """Root with two files, a directory holding two files, and an empty directory."""
    return tree("in", "file", "text", "dir/file", "dir/text", "empty/")


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_CONFIG_HOME at a temporary directory."""
    config_home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home / "sheaf"
