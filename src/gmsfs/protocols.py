"""Protocol definitions for core abstractions.

This module defines abstract interfaces (Protocols) for the facade and
its failure-logging collaborator. Designing to interfaces enables:
- Loose coupling between the CLI and the filesystem layer
- Easy substitution of test doubles
- Clear contracts for implementations

All concrete implementations satisfy these protocols structurally (duck typing).
"""

from __future__ import annotations

import os
from datetime import timedelta
from typing import BinaryIO, Protocol, Union, runtime_checkable

from gmsfs.types import FileMetadata

PathLike = Union[str, os.PathLike]


@runtime_checkable
class FailureRecorder(Protocol):
    """Protocol for recording failed filesystem operations.

    Implementations decide whether and where a failure is written. They
    must never raise: recording is a side channel and cannot change the
    error the caller sees.
    """

    def record_failure(
        self,
        operation: str,
        error: BaseException,
        path: str = "",
        stacklevel: int = 1,
    ) -> None:
        """Record one failed operation.

        Args:
            operation: Label of the failing step.
            error: The exception raised by the step.
            path: Path involved in the step, empty if none.
            stacklevel: Frames above the caller of this method that
                identify the code to blame, as in ``logging``.
        """
        ...


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for filesystem operations.

    Every method forwards to the host OS. Failures surface as ``OSError``
    subclasses or ``GmsfsError`` subclasses.
    """

    def open_file(self, path: PathLike, flags: int, perm: int = 0o644) -> BinaryIO:
        """Open a file with raw ``os.open`` flags and permission bits."""
        ...

    def open(self, path: PathLike) -> BinaryIO:
        """Open a file read-only.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        ...

    def create(self, path: PathLike) -> BinaryIO:
        """Create or truncate a file for reading and writing."""
        ...

    def read_file(self, path: PathLike) -> bytes:
        """Read the whole content of a file.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        ...

    def write_file(self, path: PathLike, content: bytes, perm: int = 0o644) -> None:
        """Write content to a file, creating or truncating it."""
        ...

    def append(self, path: PathLike, content: bytes) -> None:
        """Append content to a file, creating it if needed."""
        ...

    def stat(self, path: PathLike, include_contents: bool = False) -> FileMetadata:
        """Get metadata for one path.

        Args:
            path: Path to stat.
            include_contents: Fill ``contents`` with a shallow listing
                when the path is a directory.
        """
        ...

    def read_dir(self, path: PathLike) -> list[FileMetadata]:
        """List the immediate children of a directory sorted by name."""
        ...

    def list_names(self, path: PathLike) -> list[str]:
        """List child names, directories prefixed with ``*``."""
        ...

    def walk(self, path: PathLike) -> list[str]:
        """Recursively list a directory tree as flat path strings."""
        ...

    def exists(self, path: PathLike) -> bool:
        """Check if a path exists and can be statted."""
        ...

    def file_size(self, path: PathLike) -> int:
        """Get the size of a file in bytes."""
        ...

    def file_age(self, path: PathLike) -> timedelta:
        """Get the time elapsed since a file was last modified."""
        ...

    def mkdir(self, path: PathLike, perm: int = 0o755) -> None:
        """Create a single directory."""
        ...

    def mkdir_all(self, path: PathLike, perm: int = 0o755) -> None:
        """Create a directory and any missing parents."""
        ...

    def copy_file(self, src: PathLike, dst: PathLike) -> None:
        """Copy a file's bytes and permission bits."""
        ...

    def copy_dir(self, src: PathLike, dst: PathLike) -> None:
        """Copy a directory tree into a new destination."""
        ...

    def copy_dir_glob(self, src: PathLike, dst: PathLike, pattern: str) -> None:
        """Copy the files of one directory level that match a pattern."""
        ...

    def find_files(self, directory: PathLike, pattern: str) -> list[str]:
        """Find entries of one directory whose name matches a pattern."""
        ...

    def glob(self, pattern: str) -> list[str]:
        """Expand a shell pattern."""
        ...

    def delete(self, path: PathLike) -> None:
        """Remove a file or an empty directory."""
        ...

    def remove(self, path: PathLike) -> None:
        """Remove a file or an empty directory."""
        ...

    def remove_all(self, path: PathLike) -> None:
        """Remove a path and everything beneath it."""
        ...

    def rename(self, old: PathLike, new: PathLike) -> None:
        """Rename or move a path."""
        ...
