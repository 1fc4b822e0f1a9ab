"""Tests for CLI commands using context injection.

Commands accept a _context parameter for dependency injection, enabling unit
tests without mocking module-level imports.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
import typer
from typer.testing import CliRunner

from gmsfs import __version__, cli
from gmsfs.context import AppContext
from gmsfs.filesystem import LocalFileSystem
from gmsfs.recorder import MemoryRecorder
from gmsfs.types import DestinationExistsError


@pytest.fixture
def real_context(fs: LocalFileSystem, recorder: MemoryRecorder) -> AppContext:
    """Create a context around a real facade."""
    return AppContext(filesystem=fs, recorder=recorder)


@pytest.fixture
def mock_context(mock_filesystem: MagicMock) -> AppContext:
    """Create a context around a mock facade."""
    return AppContext(filesystem=mock_filesystem)


class TestAppCallback:
    """Tests for top-level options."""

    def test_version(self) -> None:
        """Test --version prints the version and exits."""
        result = CliRunner().invoke(cli.app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_config_exits(self, tmp_path: Path) -> None:
        """Test a broken configuration file makes commands fail."""
        config = tmp_path / "gmsfs.yaml"
        config.write_text("debug: [unclosed\n")

        result = CliRunner().invoke(cli.app, ["--config", str(config), "exists", "."])

        assert result.exit_code == 1

    def test_config_option_cleared_after_invocation(self, tmp_path: Path) -> None:
        """Test --config does not leak into later calls in the same process."""
        config = tmp_path / "gmsfs.yaml"
        config.write_text("debug: off\n")

        result = CliRunner().invoke(cli.app, ["--config", str(config), "exists", str(tmp_path)])

        assert result.exit_code == 0
        assert cli._state["config"] is None

    def test_cat_keeps_long_lines(self, tmp_path: Path) -> None:
        """Test cat prints a line wider than the terminal unchanged."""
        line = "x" * 120 + " " + "y" * 120
        target = tmp_path / "long.txt"
        target.write_text(line + "\n")

        result = CliRunner().invoke(cli.app, ["cat", str(target)])

        assert result.exit_code == 0
        assert result.output == line + "\n"


class TestInspectionCommands:
    """Tests for read-only commands."""

    def test_ls_names(
        self,
        real_context: AppContext,
        sample_tree: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test ls prints names with directories marked."""
        cli.list_dir(path=str(sample_tree), _context=real_context)

        assert capsys.readouterr().out.split() == ["*b", "f.txt"]

    def test_ls_long(self, mock_context: AppContext) -> None:
        """Test ls --long uses the metadata listing."""
        mock_context.filesystem.read_dir.return_value = []

        cli.list_dir(path="somewhere", long=True, _context=mock_context)

        mock_context.filesystem.read_dir.assert_called_once_with("somewhere")
        mock_context.filesystem.list_names.assert_not_called()

    def test_ls_long_missing(self, real_context: AppContext, tmp_path: Path) -> None:
        """Test ls --long on a missing directory exits with 1."""
        with pytest.raises(typer.Exit) as exc_info:
            cli.list_dir(path=str(tmp_path / "missing"), long=True, _context=real_context)
        assert exc_info.value.exit_code == 1

    def test_tree(
        self,
        real_context: AppContext,
        sample_tree: Path,
        workdir: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test tree prints the recursive listing."""
        cli.tree(path="a", _context=real_context)

        assert capsys.readouterr().out.split() == ["*a/b", "a/b/g.txt", "a/f.txt"]

    def test_stat(
        self,
        real_context: AppContext,
        sample_tree: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test stat shows name and size."""
        cli.stat_path(path=str(sample_tree / "f.txt"), _context=real_context)

        out = capsys.readouterr().out
        assert "f.txt" in out
        assert "Size: 10" in out

    def test_stat_missing(self, real_context: AppContext, tmp_path: Path) -> None:
        """Test stat of a missing path exits with 1."""
        with pytest.raises(typer.Exit) as exc_info:
            cli.stat_path(path=str(tmp_path / "missing"), _context=real_context)
        assert exc_info.value.exit_code == 1

    def test_exists(self, mock_context: AppContext) -> None:
        """Test exists succeeds for a present path."""
        mock_context.filesystem.exists.return_value = True

        cli.exists(path="present", _context=mock_context)

        mock_context.filesystem.exists.assert_called_once_with("present")

    def test_exists_missing(self, mock_context: AppContext) -> None:
        """Test exists exits with 1 for a missing path."""
        with pytest.raises(typer.Exit) as exc_info:
            cli.exists(path="missing", _context=mock_context)
        assert exc_info.value.exit_code == 1

    def test_age_missing(self, real_context: AppContext, tmp_path: Path) -> None:
        """Test age of a missing file exits with 1."""
        with pytest.raises(typer.Exit):
            cli.age(path=str(tmp_path / "missing"), _context=real_context)

    def test_cat(
        self,
        real_context: AppContext,
        sample_tree: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test cat prints file content."""
        cli.cat(path=str(sample_tree / "f.txt"), _context=real_context)

        assert capsys.readouterr().out == "0123456789"

    def test_glob(self, mock_context: AppContext) -> None:
        """Test glob forwards the pattern."""
        cli.glob_cmd(pattern="*.log", _context=mock_context)

        mock_context.filesystem.glob.assert_called_once_with("*.log")

    def test_find(
        self,
        real_context: AppContext,
        workdir: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test find prints matching entries."""
        (workdir / "a.txt").touch()
        (workdir / "b.log").touch()

        cli.find(directory=".", pattern="*.txt", _context=real_context)

        assert capsys.readouterr().out.split() == ["./a.txt"]

    def test_find_keeps_long_names(
        self,
        real_context: AppContext,
        workdir: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test a path wider than the terminal stays on one line."""
        name = "n" * 200 + ".txt"
        (workdir / name).touch()

        cli.find(directory=".", pattern="*.txt", _context=real_context)

        assert capsys.readouterr().out.splitlines() == ["./" + name]

    def test_find_bad_pattern(self, real_context: AppContext, workdir: Path) -> None:
        """Test find exits with 1 for an unclosed bracket."""
        with pytest.raises(typer.Exit) as exc_info:
            cli.find(directory=".", pattern="[", _context=real_context)
        assert exc_info.value.exit_code == 1


class TestModificationCommands:
    """Tests for commands that change the filesystem."""

    def test_cp(self, real_context: AppContext, sample_tree: Path) -> None:
        """Test cp copies a file."""
        cli.copy(
            src=str(sample_tree / "f.txt"),
            dst=str(sample_tree / "copy.txt"),
            _context=real_context,
        )

        assert (sample_tree / "copy.txt").read_bytes() == b"0123456789"

    def test_cp_missing_source(
        self, real_context: AppContext, recorder: MemoryRecorder, tmp_path: Path
    ) -> None:
        """Test cp of a missing source exits with 1 and records the failure."""
        with pytest.raises(typer.Exit) as exc_info:
            cli.copy(
                src=str(tmp_path / "missing"),
                dst=str(tmp_path / "dst"),
                _context=real_context,
            )
        assert exc_info.value.exit_code == 1
        assert recorder.operations == ["copy_file (open)"]

    def test_cpdir(self, mock_context: AppContext) -> None:
        """Test cpdir without a pattern copies the whole tree."""
        cli.copy_dir(src="src", dst="dst", _context=mock_context)

        mock_context.filesystem.copy_dir.assert_called_once_with("src", "dst")
        mock_context.filesystem.copy_dir_glob.assert_not_called()

    def test_cpdir_pattern(self, mock_context: AppContext) -> None:
        """Test cpdir with a pattern copies matching entries."""
        cli.copy_dir(src="src", dst="dst", pattern="*.txt", _context=mock_context)

        mock_context.filesystem.copy_dir_glob.assert_called_once_with("src", "dst", "*.txt")

    def test_cpdir_existing_destination(self, mock_context: AppContext) -> None:
        """Test cpdir exits with 1 when the destination exists."""
        mock_context.filesystem.copy_dir.side_effect = DestinationExistsError()

        with pytest.raises(typer.Exit) as exc_info:
            cli.copy_dir(src="src", dst="dst", _context=mock_context)
        assert exc_info.value.exit_code == 1

    def test_mkdir_parents(self, real_context: AppContext, tmp_path: Path) -> None:
        """Test mkdir --parents creates nested directories."""
        target = tmp_path / "x" / "y"

        cli.make_dir(path=str(target), parents=True, _context=real_context)

        assert target.is_dir()

    def test_mkdir_existing(self, real_context: AppContext, tmp_path: Path) -> None:
        """Test mkdir of an existing directory exits with 1."""
        with pytest.raises(typer.Exit):
            cli.make_dir(path=str(tmp_path), _context=real_context)

    def test_rm_recursive(self, real_context: AppContext, sample_tree: Path) -> None:
        """Test rm --recursive removes a populated directory."""
        cli.remove(path=str(sample_tree), recursive=True, _context=real_context)

        assert not sample_tree.exists()

    def test_rm_non_empty(self, real_context: AppContext, sample_tree: Path) -> None:
        """Test rm without --recursive refuses a populated directory."""
        with pytest.raises(typer.Exit):
            cli.remove(path=str(sample_tree), _context=real_context)

        assert sample_tree.exists()

    def test_mv(self, mock_context: AppContext) -> None:
        """Test mv forwards to rename."""
        cli.move(src="old", dst="new", _context=mock_context)

        mock_context.filesystem.rename.assert_called_once_with("old", "new")

    def test_mv_failure(self, mock_context: AppContext) -> None:
        """Test a failed rename exits with 1."""
        mock_context.filesystem.rename.side_effect = OSError(18, "Invalid cross-device link")

        with pytest.raises(typer.Exit) as exc_info:
            cli.move(src="old", dst="/mnt/other/new", _context=mock_context)
        assert exc_info.value.exit_code == 1
