"""Application context for dependency injection.

This module separates object creation from object use, enabling testability
and reducing coupling in CLI commands.

Dependencies are typed using Protocols (abstract interfaces) rather than
concrete implementations, so test doubles can be injected without
inheritance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from gmsfs.config import Settings, load_settings
from gmsfs.protocols import FailureRecorder, FileSystem


def _default_recorder() -> FailureRecorder:
    """Create the default recorder, which discards failures."""
    from gmsfs.recorder import NullRecorder
    return NullRecorder()


@dataclass
class AppContext:
    """Container for application dependencies.

    Provides a single injection point for the services used by CLI commands.
    """

    filesystem: FileSystem
    recorder: FailureRecorder = field(default_factory=_default_recorder)
    settings: Settings = field(default_factory=Settings)


def create_context(
    settings: Settings | None = None,
    config_path: Path | None = None,
) -> AppContext:
    """Factory for application dependencies.

    Creates the recorder from the settings and hands it to the facade.
    Use this in production code. For tests, construct AppContext directly
    with test doubles.

    Args:
        settings: Explicit settings. Loaded from ``config_path`` if None.
        config_path: Override configuration file location.

    Returns:
        Configured AppContext with all dependencies.
    """
    from gmsfs.filesystem import LocalFileSystem

    settings = settings or load_settings(config_path)
    recorder = settings.build_recorder()
    filesystem = LocalFileSystem(recorder=recorder)

    return AppContext(
        filesystem=filesystem,
        recorder=recorder,
        settings=settings,
    )
