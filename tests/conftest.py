"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gmsfs.filesystem import LocalFileSystem
from gmsfs.recorder import MemoryRecorder


@pytest.fixture
def recorder() -> MemoryRecorder:
    """Create a recorder that keeps failures in memory."""
    return MemoryRecorder()


@pytest.fixture
def fs(recorder: MemoryRecorder) -> LocalFileSystem:
    """Create a facade wired to the in-memory recorder."""
    return LocalFileSystem(recorder=recorder)


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from inside tmp_path."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ============================================================================
# Directory Tree Fixtures
# ============================================================================


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Create a small tree.

    a/
      f.txt      (10 bytes)
      b/
        g.txt
    """
    root = tmp_path / "a"
    (root / "b").mkdir(parents=True)
    (root / "f.txt").write_bytes(b"0123456789")
    (root / "b" / "g.txt").write_text("nested")
    return root


# ============================================================================
# Mock FileSystem Fixture
# ============================================================================


@pytest.fixture
def mock_filesystem() -> MagicMock:
    """Create a mock FileSystem for testing.

    The mock tracks all filesystem operations without touching real files.
    """
    fs = MagicMock()
    fs.exists.return_value = False
    fs.list_names.return_value = []
    fs.walk.return_value = []
    fs.glob.return_value = []
    return fs
