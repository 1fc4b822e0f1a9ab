"""Shared data types for gmsfs."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from datetime import datetime

__all__ = [
    "BadPatternError",
    "DestinationExistsError",
    "FailureRecord",
    "FileMetadata",
    "GmsfsError",
    "SourceNotDirectoryError",
]


class GmsfsError(Exception):
    """Error synthesized by gmsfs rather than raised by the OS."""

    pass


class SourceNotDirectoryError(GmsfsError, NotADirectoryError):
    """Source of a directory copy is not a directory."""

    def __init__(self, message: str = "source is not a directory") -> None:
        super().__init__(message)


class DestinationExistsError(GmsfsError, FileExistsError):
    """Destination of a directory copy already exists."""

    def __init__(self, message: str = "destination already exists") -> None:
        super().__init__(message)


class BadPatternError(GmsfsError, ValueError):
    """Shell pattern has a bracket expression that is never closed."""

    def __init__(self, message: str = "syntax error in pattern") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class FileMetadata:
    """Observed state of one filesystem entry at stat time.

    Attributes:
        exists: Always True for records built from a successful stat.
        size: Size in bytes as reported by the OS.
        mode: Raw ``st_mode`` including the file type bits.
        last_modified: Modification time in local time.
        is_dir: True if the entry is a directory.
        name: Base name of the entry, never a full path.
        contents: Child records, only filled by a top-level directory stat.
    """

    exists: bool
    size: int
    mode: int
    last_modified: datetime
    is_dir: bool
    name: str
    contents: tuple[FileMetadata, ...] = field(default=())

    @property
    def permissions(self) -> int:
        """Permission bits of ``mode`` without the file type."""
        return stat.S_IMODE(self.mode)

    @classmethod
    def from_stat(cls, name: str, st: os.stat_result) -> FileMetadata:
        """Build a record from an ``os.stat_result``."""
        return cls(
            exists=True,
            size=st.st_size,
            mode=st.st_mode,
            last_modified=datetime.fromtimestamp(st.st_mtime),
            is_dir=stat.S_ISDIR(st.st_mode),
            name=name,
        )


@dataclass(frozen=True)
class FailureRecord:
    """A failed operation handed to a failure recorder.

    Attributes:
        operation: Label of the failing step, e.g. ``"CopyFile (open)"``.
        error: The exception that was raised.
        path: The path involved, empty when the step has none.
    """

    operation: str
    error: BaseException
    path: str = ""

    def __str__(self) -> str:
        return f"{self.operation}: {self.error} path: {self.path}"
