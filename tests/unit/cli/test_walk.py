"""Unit tests for walk command.

Tests for listing selected entries without touching them.
"""

import json
from pathlib import Path

import pytest
from sheaf.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


class TestWalkCommand:
    """Tests for sheaf walk command."""

    def test_walk_help(self) -> None:
        """Walk command shows help."""
        result = runner.invoke(app, ["walk", "--help"])
        assert result.exit_code == 0
        assert "--glob" in result.output

    def test_walk_lists_matches(self, sample_tree: Path) -> None:
        """Matching entries are listed relative to their directory."""
        result = runner.invoke(app, ["walk", str(sample_tree), "-g", "*/text"])

        assert result.exit_code == 0
        assert "dir/text" in result.output
        assert "1 file(s), 0 directory(ies)" in result.output

    def test_walk_kind_dirs(self, sample_tree: Path) -> None:
        """--kind dirs lists directories only."""
        result = runner.invoke(app, ["walk", str(sample_tree), "--kind", "dirs"])

        assert result.exit_code == 0
        assert "0 file(s), 2 directory(ies)" in result.output

    def test_walk_kind_files_depth(self, sample_tree: Path) -> None:
        """--kind files with --depth 1 lists top-level files."""
        result = runner.invoke(app, ["walk", str(sample_tree), "-k", "files", "-d", "1"])

        assert result.exit_code == 0
        assert "2 file(s), 0 directory(ies)" in result.output

    def test_walk_json(self, sample_tree: Path) -> None:
        """--format json prints machine-readable entries."""
        result = runner.invoke(
            app, ["walk", str(sample_tree), "-g", "**", "-g", "!dir/**", "--format", "json"]
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert sorted(item["path"] for item in data) == ["empty", "file", "text"]
        assert all(item["base"] == str(sample_tree) for item in data)

    def test_walk_defaults_to_cwd(self, sample_tree: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without sources the current directory is walked."""
        monkeypatch.chdir(sample_tree)

        result = runner.invoke(app, ["walk", "-g", "text", "-f", "json"])

        assert result.exit_code == 0
        assert [item["path"] for item in json.loads(result.stdout)] == ["text"]

    def test_walk_no_matches(self, sample_tree: Path) -> None:
        """An empty selection is reported."""
        result = runner.invoke(app, ["walk", str(sample_tree), "-g", "nothing*"])

        assert result.exit_code == 0
        assert "No entries matched." in result.output

    def test_walk_bad_pattern(self, sample_tree: Path) -> None:
        """A malformed pattern exits with an error."""
        result = runner.invoke(app, ["walk", str(sample_tree), "-g", "te[xt"])

        assert result.exit_code == 1
        assert "Unterminated character class" in result.output

    def test_walk_missing_source_warns(self, tmp_path: Path) -> None:
        """A missing source is reported but not fatal."""
        result = runner.invoke(app, ["walk", str(tmp_path / "missing")])

        assert result.exit_code == 0
        assert "Source does not exist" in result.output
        assert "No entries matched." in result.output

    def test_walk_recipe(self, sample_tree: Path, tmp_path: Path) -> None:
        """Entries of a recipe are walked relative to the recipe's directory."""
        recipe_path = tmp_path / "recipe.toml"
        recipe_path.write_text('[[entries]]\npath = "in"\nglob = ["dir/*"]\n')

        result = runner.invoke(app, ["walk", "--recipe", str(recipe_path), "-f", "json"])

        assert result.exit_code == 0
        paths = sorted(item["path"] for item in json.loads(result.stdout))
        assert paths == ["dir/file", "dir/text"]

    def test_walk_missing_recipe(self, tmp_path: Path) -> None:
        """A missing recipe exits with an error."""
        result = runner.invoke(app, ["walk", "--recipe", str(tmp_path / "none.toml")])

        assert result.exit_code == 1
        assert "Recipe not found" in result.output
