"""Unit tests for the tree walker.

Tests for collecting, copying, moving and deleting directory trees.
"""

import threading
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from sheaf.core.errors import ConfigurationError, DestinationConflictError, TraversalIOError
from sheaf.core.locations import Directory, File
from sheaf.core.options import FilterSet
from sheaf.core.walker import TreeWalker, WalkMode

Listing = Callable[[Path], set[str]]

EVERYTHING = {"file", "text", "dir", "dir/file", "dir/text", "empty"}


def _collect(root: Path, filters: FilterSet | None = None) -> set[str]:
    walker = TreeWalker(Directory(root), filters)
    return {location.relative_to(base).as_posix() for base, location in walker.walk()}


def _run(
    root: Path,
    mode: WalkMode,
    filters: FilterSet | None = None,
    destination: Path | None = None,
) -> list:
    target = Directory(destination) if destination is not None else None
    return list(TreeWalker(Directory(root), filters, mode, destination=target).walk())


class TestCollect:
    """Tests for WalkMode.COLLECT."""

    def test_everything_except_root(self, sample_tree: Path) -> None:
        """Without filters every entry below the root is listed."""
        assert _collect(sample_tree) == EVERYTHING

    def test_yields_root_as_base(self, sample_tree: Path) -> None:
        """Every pair carries the traversal root as base."""
        walker = TreeWalker(Directory(sample_tree))
        assert {base for base, _ in walker.walk()} == {Directory(sample_tree)}

    def test_star_selects_top_level(self, sample_tree: Path) -> None:
        """'*' selects files and directories directly below the root."""
        assert _collect(sample_tree, FilterSet.of("*")) == {"file", "text", "dir", "empty"}

    def test_unmatched_directories_are_descended(self, sample_tree: Path) -> None:
        """A directory that does not match is still searched."""
        assert _collect(sample_tree, FilterSet.of("*/text")) == {"dir/text"}

    def test_union_of_includes(self, sample_tree: Path) -> None:
        """Several includes select the union of their matches."""
        selected = _collect(sample_tree, FilterSet.of("*", "*/text"))
        assert selected == {"file", "text", "dir", "empty", "dir/text"}

    def test_depth_one(self, sample_tree: Path) -> None:
        """Depth 1 visits only direct children."""
        assert _collect(sample_tree, FilterSet().depth(1)) == {"file", "text", "dir", "empty"}

    def test_depth_zero(self, sample_tree: Path) -> None:
        """Depth 0 visits nothing."""
        assert _collect(sample_tree, FilterSet().depth(0)) == set()

    def test_predicate(self, sample_tree: Path) -> None:
        """The predicate filters entries but not descent."""
        filters = FilterSet().take(lambda path, attrs: path.name.startswith("t"))
        assert _collect(sample_tree, filters) == {"text", "dir/text"}

    def test_directory_patterns(self, tree: Callable[..., Path]) -> None:
        """Directory walks follow the same pattern rules as files."""
        root = tree("test", "file", "dir1/", "dir2/file", "dir2/dir3/")

        def directories(*patterns: str) -> int:
            walker = TreeWalker(Directory(root), FilterSet.of(*patterns))
            return sum(1 for _, loc in walker.walk() if isinstance(loc, Directory))

        assert directories() == 3
        assert directories("dir*") == 2
        assert directories("*") == 2
        assert directories("**") == 3
        assert directories("not") == 0

    def test_missing_root(self, tmp_path: Path) -> None:
        """A missing root yields nothing."""
        assert _collect(tmp_path / "missing") == set()

    def test_symlinked_directory_not_followed(self, sample_tree: Path) -> None:
        """A link to a directory is listed as a file and not descended."""
        (sample_tree / "link").symlink_to(sample_tree / "dir", target_is_directory=True)
        walker = TreeWalker(Directory(sample_tree))
        found = {loc.relative_to(base).as_posix(): loc for base, loc in walker.walk()}
        assert isinstance(found["link"], File)
        assert "link/file" not in found

    def test_single_use(self, sample_tree: Path) -> None:
        """A walker serves exactly one traversal."""
        walker = TreeWalker(Directory(sample_tree))
        list(walker.walk())
        with pytest.raises(RuntimeError, match="only be walked once"):
            walker.walk()

    def test_lazy(self, sample_tree: Path) -> None:
        """Nothing is read before the first result is requested."""
        walker = TreeWalker(Directory(sample_tree))
        with patch.object(Directory, "children", side_effect=AssertionError("read")):
            walker.walk()


class TestCopy:
    """Tests for WalkMode.COPY."""

    def test_destination_required(self, sample_tree: Path) -> None:
        """COPY without destination is a configuration error."""
        with pytest.raises(ConfigurationError, match="destination"):
            TreeWalker(Directory(sample_tree), mode=WalkMode.COPY)

    def test_copy_keeps_root_name(self, sample_tree: Path, tmp_path: Path, listing: Listing) -> None:
        """The root directory itself is recreated below the destination."""
        out = tmp_path / "out"
        _run(sample_tree, WalkMode.COPY, destination=out)

        assert listing(out) == {"in"} | {f"in/{p}" for p in EVERYTHING}
        assert (out / "in" / "dir" / "text").read_text() == "dir/text"
        assert listing(sample_tree) == EVERYTHING

    def test_copy_ignore_root(self, sample_tree: Path, tmp_path: Path, listing: Listing) -> None:
        """With the root ignored its children land directly in the destination."""
        out = tmp_path / "out"
        _run(sample_tree, WalkMode.COPY, FilterSet().ignore_root(), out)
        assert listing(out) == EVERYTHING

    def test_copy_star_creates_matched_directories_only(
        self, sample_tree: Path, tmp_path: Path, listing: Listing
    ) -> None:
        """Matched directories are created; their unmatched children are not copied."""
        out = tmp_path / "out"
        _run(sample_tree, WalkMode.COPY, FilterSet.of("*").ignore_root(), out)
        assert listing(out) == {"file", "text", "dir", "empty"}

    def test_copy_nested_pattern(self, sample_tree: Path, tmp_path: Path, listing: Listing) -> None:
        """Parents of matched files are created as needed."""
        out = tmp_path / "out"
        _run(sample_tree, WalkMode.COPY, FilterSet.of("*/text"), out)
        assert listing(out) == {"in", "in/dir", "in/dir/text"}

    def test_copy_twice_is_idempotent(
        self, sample_tree: Path, tmp_path: Path, listing: Listing
    ) -> None:
        """Copying again replaces files and yields the same tree."""
        out = tmp_path / "out"
        _run(sample_tree, WalkMode.COPY, destination=out)
        first = listing(out)
        _run(sample_tree, WalkMode.COPY, destination=out)
        assert listing(out) == first
        assert (out / "in" / "file").read_text() == "file"

    def test_copy_replaces_existing_file(self, sample_tree: Path, tmp_path: Path) -> None:
        """An existing destination file is overwritten."""
        out = tmp_path / "out"
        (out / "in").mkdir(parents=True)
        (out / "in" / "file").write_text("old")
        _run(sample_tree, WalkMode.COPY, destination=out)
        assert (out / "in" / "file").read_text() == "file"

    def test_copy_relocated(self, sample_tree: Path, tmp_path: Path, listing: Listing) -> None:
        """allocate_in places everything below a relative directory."""
        out = tmp_path / "out"
        _run(sample_tree, WalkMode.COPY, FilterSet.of("file").allocate_in("lib/x"), out)
        assert listing(out) == {"lib", "lib/x", "lib/x/in", "lib/x/in/file"}

    def test_copy_to_deep_absent_destination(self, sample_tree: Path, tmp_path: Path) -> None:
        """Missing destination directories are created."""
        out = tmp_path / "a" / "b" / "c"
        _run(sample_tree, WalkMode.COPY, FilterSet.of("file"), out)
        assert (out / "in" / "file").is_file()

    def test_directory_onto_file_conflicts(self, sample_tree: Path, tmp_path: Path) -> None:
        """A file where a directory must go raises DestinationConflictError."""
        out = tmp_path / "out"
        (out / "in").mkdir(parents=True)
        (out / "in" / "dir").write_text("in the way")

        with pytest.raises(DestinationConflictError) as excinfo:
            _run(sample_tree, WalkMode.COPY, destination=out)
        assert excinfo.value.destination == out / "in" / "dir"

    def test_file_onto_directory_conflicts(self, sample_tree: Path, tmp_path: Path) -> None:
        """A directory where a file must go raises DestinationConflictError."""
        out = tmp_path / "out"
        (out / "in" / "file").mkdir(parents=True)
        with pytest.raises(DestinationConflictError):
            _run(sample_tree, WalkMode.COPY, destination=out)

    def test_destination_is_file(self, sample_tree: Path, tmp_path: Path) -> None:
        """A destination that is a file raises DestinationConflictError."""
        out = tmp_path / "out"
        out.write_text("file")
        with pytest.raises(DestinationConflictError):
            _run(sample_tree, WalkMode.COPY, destination=out)

    def test_selected_entries_below_file_conflict(self, sample_tree: Path, tmp_path: Path) -> None:
        """A file where the copied root would go is reported as the conflict."""
        out = tmp_path / "out"
        out.mkdir()
        (out / "in").write_text("in the way")
        with pytest.raises(DestinationConflictError) as excinfo:
            _run(sample_tree, WalkMode.COPY, FilterSet.of("**"), out)
        assert excinfo.value.destination == out / "in"
        assert (out / "in").read_text() == "in the way"

    def test_relocation_through_file_conflicts(self, sample_tree: Path, tmp_path: Path) -> None:
        """A file occupying the relocation directory raises DestinationConflictError."""
        out = tmp_path / "out"
        out.mkdir()
        (out / "lib").write_text("in the way")
        with pytest.raises(DestinationConflictError) as excinfo:
            _run(sample_tree, WalkMode.COPY, FilterSet.of("**/file").allocate_in("lib"), out)
        assert excinfo.value.destination == out / "lib"

    def test_copy_into_itself_rejected(self, sample_tree: Path) -> None:
        """Copying a tree into its own subtree is refused up front."""
        with pytest.raises(ConfigurationError, match="into itself"):
            TreeWalker(
                Directory(sample_tree),
                FilterSet().ignore_root(),
                WalkMode.COPY,
                Directory(sample_tree / "dir"),
            )

    def test_io_error_wrapped(self, sample_tree: Path, tmp_path: Path) -> None:
        """OSError from the filesystem surfaces as TraversalIOError with the path."""
        failure = PermissionError(13, "Permission denied")
        with (
            patch("sheaf.core.walker.shutil.copy2", side_effect=failure),
            pytest.raises(TraversalIOError) as excinfo,
        ):
            _run(sample_tree, WalkMode.COPY, FilterSet.of("file"), tmp_path / "out")

        assert excinfo.value.path == sample_tree / "file"
        assert excinfo.value.__cause__ is failure
        assert "Permission denied" in str(excinfo.value)


class TestMove:
    """Tests for WalkMode.MOVE."""

    def test_move_everything_removes_root(
        self, sample_tree: Path, tmp_path: Path, listing: Listing
    ) -> None:
        """An unfiltered move relocates the whole tree including the root."""
        out = tmp_path / "out"
        _run(sample_tree, WalkMode.MOVE, destination=out)
        assert not sample_tree.exists()
        assert listing(out) == {"in"} | {f"in/{p}" for p in EVERYTHING}
        assert (out / "in" / "dir" / "file").read_text() == "dir/file"

    def test_move_children_with_star(
        self, sample_tree: Path, tmp_path: Path, listing: Listing
    ) -> None:
        """Matched directories are created; non-empty sources stay behind."""
        out = tmp_path / "out"
        _run(sample_tree, WalkMode.MOVE, FilterSet.of("*").ignore_root(), out)
        assert listing(out) == {"file", "text", "dir", "empty"}
        assert listing(sample_tree) == {"dir", "dir/file", "dir/text"}

    def test_kept_directory_not_reported(self, sample_tree: Path, tmp_path: Path) -> None:
        """A matched directory that still holds entries is not reported as moved."""
        results = _run(sample_tree, WalkMode.MOVE, FilterSet.of("*").ignore_root(), tmp_path / "o")
        names = {loc.relative_to(base).as_posix() for base, loc in results}
        assert names == {"file", "text", "empty"}
        assert (sample_tree / "dir").is_dir()

    def test_kept_root_not_reported(self, sample_tree: Path, tmp_path: Path) -> None:
        """An unfiltered move limited by depth leaves the root and does not report it."""
        results = _run(sample_tree, WalkMode.MOVE, FilterSet().depth(1), tmp_path / "o")
        assert Directory(sample_tree) not in {loc for _, loc in results}
        assert (sample_tree / "dir" / "file").exists()

    def test_move_recursive_keeps_empty_root(
        self, sample_tree: Path, tmp_path: Path, listing: Listing
    ) -> None:
        """With '**' everything below the root moves and the root stays."""
        out = tmp_path / "out"
        _run(sample_tree, WalkMode.MOVE, FilterSet.of("**"), out)
        assert sample_tree.is_dir()
        assert listing(sample_tree) == set()
        assert listing(out) == {"in"} | {f"in/{p}" for p in EVERYTHING}

    def test_move_replaces_existing_file(self, sample_tree: Path, tmp_path: Path) -> None:
        """Moving onto an existing file replaces it."""
        out = tmp_path / "out"
        out.mkdir()
        (out / "file").write_text("old")
        _run(sample_tree, WalkMode.MOVE, FilterSet.of("file").ignore_root(), out)
        assert (out / "file").read_text() == "file"
        assert not (sample_tree / "file").exists()

    def test_directory_onto_file_conflicts(self, sample_tree: Path, tmp_path: Path) -> None:
        """Moving a directory onto a file raises DestinationConflictError."""
        out = tmp_path / "out"
        out.mkdir()
        (out / "dir").write_text("in the way")
        with pytest.raises(DestinationConflictError):
            _run(sample_tree, WalkMode.MOVE, FilterSet.of("dir").ignore_root(), out)
        assert (sample_tree / "dir" / "file").exists()

    def test_directories_emitted_after_children(self, sample_tree: Path, tmp_path: Path) -> None:
        """A moved directory is reported after its contents."""
        results = _run(sample_tree, WalkMode.MOVE, FilterSet.of("dir", "dir/**"), tmp_path / "o")
        names = [loc.relative_to(base).as_posix() for base, loc in results]
        assert names.index("dir") > names.index("dir/file")
        assert names.index("dir") > names.index("dir/text")


class TestDelete:
    """Tests for WalkMode.DELETE."""

    def test_delete_everything(self, sample_tree: Path) -> None:
        """An unfiltered delete removes the root too."""
        results = _run(sample_tree, WalkMode.DELETE)
        assert not sample_tree.exists()
        assert Directory(sample_tree) in {loc for _, loc in results}

    def test_delete_recursive_keeps_root(self, sample_tree: Path, listing: Listing) -> None:
        """'**' empties the root without removing it."""
        _run(sample_tree, WalkMode.DELETE, FilterSet.of("**"))
        assert sample_tree.is_dir()
        assert listing(sample_tree) == set()

    def test_delete_by_pattern(self, tree: Callable[..., Path], listing: Listing) -> None:
        """Only matching files are deleted; unmatched directories remain."""
        root = tree("logs", "a.txt", "b.log", "sub/c.txt", "sub/d.log")
        _run(root, WalkMode.DELETE, FilterSet.of("**/*.txt"))
        assert listing(root) == {"b.log", "sub", "sub/d.log"}

    def test_matched_non_empty_directory_kept(self, sample_tree: Path) -> None:
        """A matched directory that still has entries is left in place."""
        results = _run(sample_tree, WalkMode.DELETE, FilterSet.of("dir"))
        assert results == []
        assert (sample_tree / "dir" / "file").exists()

    def test_delete_with_exclude(self, sample_tree: Path, listing: Listing) -> None:
        """Excluded entries survive and keep their parents alive."""
        _run(sample_tree, WalkMode.DELETE, FilterSet.of("**", "!dir/text"))
        assert listing(sample_tree) == {"dir", "dir/text"}

    def test_delete_missing_root(self, tmp_path: Path) -> None:
        """Deleting an absent directory is a no-op."""
        assert _run(tmp_path / "missing", WalkMode.DELETE) == []


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancelled_before_start(self, sample_tree: Path, tmp_path: Path) -> None:
        """A pre-set cancel event prevents any work."""
        event = threading.Event()
        event.set()
        out = tmp_path / "out"
        walker = TreeWalker(
            Directory(sample_tree),
            FilterSet().ignore_root(),
            WalkMode.COPY,
            Directory(out),
            cancel=event,
        )
        assert list(walker.walk()) == []
        assert not out.exists()

    def test_cancel_mid_walk(self, sample_tree: Path) -> None:
        """Cancelling stops the walk before the next entry."""
        walker = TreeWalker(Directory(sample_tree))
        iterator = walker.walk()
        next(iterator)
        walker.cancel()
        assert walker.cancelled
        assert list(iterator) == []

    def test_close_stops_delete(self, sample_tree: Path) -> None:
        """Closing the iterator leaves the remaining entries untouched."""
        iterator = TreeWalker(Directory(sample_tree), mode=WalkMode.DELETE).walk()
        next(iterator)
        iterator.close()
        assert sample_tree.exists()
