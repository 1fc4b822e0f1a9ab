"""Local filesystem facade.

This module provides a thin layer over the host operating system's
filesystem calls. Every operation forwards to ``os``, ``shutil`` or
``glob`` with small additions: path cleaning, existence checks before
some steps, name-sorted listings and failure reporting to an injected
recorder. Nothing is cached and no state is shared between calls.
"""

from __future__ import annotations

import errno
import fnmatch
import glob as globbing
import io
import logging
import os
import shutil
import stat
from dataclasses import replace
from datetime import datetime, timedelta
from typing import BinaryIO

from gmsfs.paths import clean_path
from gmsfs.protocols import FailureRecorder, PathLike
from gmsfs.recorder import NullRecorder
from gmsfs.types import (
    BadPatternError,
    DestinationExistsError,
    FileMetadata,
    SourceNotDirectoryError,
)

logger = logging.getLogger(__name__)

DEFAULT_FILE_PERM = 0o644
DEFAULT_DIR_PERM = 0o755

# Directory entries in recursive listings carry this prefix
DIR_MARKER = "*"

# Frames between a recorder and the code that called the facade:
# record_failure -> _fail -> facade method -> caller
_CALLER_STACKLEVEL = 3


def _base_name(path: str) -> str:
    """Last element of a path, ignoring trailing separators."""
    trimmed = path.rstrip(os.sep)
    if not trimmed:
        return os.sep if path else "."
    return os.path.basename(trimmed)


def _mode_for_flags(flags: int) -> str:
    """File object mode matching raw ``os.open`` flags."""
    access = flags & (os.O_WRONLY | os.O_RDWR)
    if flags & os.O_APPEND:
        return "ab" if access == os.O_WRONLY else "a+b"
    if access == os.O_WRONLY:
        return "wb"
    if access == os.O_RDWR:
        return "r+b"
    return "rb"


def _sorted_entries(path: str) -> list[os.DirEntry]:
    """Immediate entries of a directory sorted by name."""
    with os.scandir(path) as it:
        return sorted(it, key=lambda entry: entry.name)


def _check_pattern(pattern: str) -> None:
    """Reject a pattern whose bracket expression is never closed.

    Brackets are scanned the way ``fnmatch`` reads them: a ``]`` right
    after ``[`` or ``[!`` is a literal member of the set.
    """
    i, n = 0, len(pattern)
    while i < n:
        if pattern[i] != "[":
            i += 1
            continue
        j = i + 1
        if j < n and pattern[j] == "!":
            j += 1
        if j < n and pattern[j] == "]":
            j += 1
        end = pattern.find("]", j)
        if end < 0:
            raise BadPatternError(f"syntax error in pattern: {pattern!r}")
        i = end + 1


class LocalFileSystem:
    """Production filesystem implementation.

    Wraps standard library ``os``, ``shutil`` and ``glob`` operations.
    Satisfies the FileSystem protocol structurally.

    Failed steps are handed to ``recorder`` and then re-raised unchanged,
    except where a method documents that it swallows errors.
    """

    def __init__(self, recorder: FailureRecorder | None = None) -> None:
        """Initialize the facade.

        Args:
            recorder: Receives failed steps. Defaults to a NullRecorder.
        """
        self.recorder = recorder or NullRecorder()

    def _fail(
        self, operation: str, error: BaseException, path: PathLike = "", depth: int = 0
    ) -> None:
        """Report a failed step to the recorder.

        ``depth`` counts extra frames between the public method and the
        step that failed, so the log still names the facade's caller.
        """
        self.recorder.record_failure(
            operation,
            error,
            os.fspath(path),
            stacklevel=_CALLER_STACKLEVEL + depth,
        )

    # ------------------------------------------------------------------
    # Opening, reading and writing
    # ------------------------------------------------------------------

    def open_file(self, path: PathLike, flags: int, perm: int = DEFAULT_FILE_PERM) -> BinaryIO:
        """Open a file with raw ``os.open`` flags.

        Args:
            path: File to open. Used as given, without cleaning.
            flags: ``os.O_*`` flags.
            perm: Permission bits for a newly created file.

        Returns:
            Binary file object whose mode follows ``flags``.
        """
        try:
            fd = os.open(path, flags, perm)
        except OSError as e:
            self._fail("open_file", e, path)
            raise
        try:
            return os.fdopen(fd, _mode_for_flags(flags))
        except Exception:
            os.close(fd)
            raise

    def open(self, path: PathLike) -> BinaryIO:
        """Open a file read-only in binary mode."""
        name = clean_path(path)
        try:
            return io.open(name, "rb")
        except OSError as e:
            self._fail("open", e, name)
            raise

    def create(self, path: PathLike) -> BinaryIO:
        """Create or truncate a file and open it for reading and writing."""
        name = clean_path(path)
        try:
            return io.open(name, "w+b")
        except OSError as e:
            self._fail("create", e, name)
            raise

    def read_file(self, path: PathLike) -> bytes:
        """Read the whole content of a file."""
        try:
            with io.open(path, "rb") as stream:
                return stream.read()
        except OSError as e:
            self._fail("read_file", e, path)
            raise

    def read_text(self, path: PathLike, encoding: str = "utf-8") -> str:
        """Read the whole content of a file as text."""
        return self.read_file(path).decode(encoding)

    def write_file(self, path: PathLike, content: bytes, perm: int = DEFAULT_FILE_PERM) -> None:
        """Write content to a file, creating or truncating it.

        ``perm`` only applies when the file is created. Failures are
        raised without being recorded.
        """
        name = clean_path(path)
        fd = os.open(name, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, perm)
        with os.fdopen(fd, "wb") as stream:
            stream.write(content)

    def write_text(self, path: PathLike, content: str, encoding: str = "utf-8") -> None:
        """Write text content to a file, creating or truncating it."""
        self.write_file(path, content.encode(encoding))

    def append(self, path: PathLike, content: bytes) -> None:
        """Append content to a file, creating it with mode 0644 if missing.

        The file is closed before returning on every path. Only write
        failures are recorded; a failure to open is raised as is.
        """
        fd = os.open(path, os.O_APPEND | os.O_WRONLY | os.O_CREAT, DEFAULT_FILE_PERM)
        with os.fdopen(fd, "ab") as stream:
            try:
                stream.write(content)
                stream.flush()
            except OSError as e:
                self._fail("append", e, path)
                raise

    def append_text(self, path: PathLike, content: str, encoding: str = "utf-8") -> None:
        """Append text content to a file."""
        self.append(path, content.encode(encoding))

    # ------------------------------------------------------------------
    # Metadata and listings
    # ------------------------------------------------------------------

    def stat(self, path: PathLike, include_contents: bool = False) -> FileMetadata:
        """Get metadata for one path.

        Symbolic links are followed. The record's name is the base name
        of ``path`` no matter how much of a path was given. Failures are
        raised without being recorded.

        Args:
            path: Path to stat.
            include_contents: When the path is a directory, fill
                ``contents`` with its shallow listing.

        Returns:
            A fresh FileMetadata record.

        Raises:
            FileNotFoundError: If the path does not exist.
        """
        name = os.fspath(path)
        info = FileMetadata.from_stat(_base_name(name), os.stat(name))
        if include_contents and info.is_dir:
            return replace(info, contents=tuple(self.read_dir(name)))
        return info

    def read_dir(self, path: PathLike) -> list[FileMetadata]:
        """List the immediate children of a directory.

        Entries are sorted by name in code point order, which matches
        byte order for UTF-8 names and is case-sensitive. Entries are
        described without following symbolic links.

        Raises:
            NotADirectoryError: If the path is not a directory.
            FileNotFoundError: If the path does not exist.
        """
        return [
            FileMetadata.from_stat(entry.name, entry.stat(follow_symlinks=False))
            for entry in _sorted_entries(os.fspath(path))
        ]

    def list_names(self, path: PathLike) -> list[str]:
        """List child names, prefixing directories with ``*``.

        Returns an empty list instead of raising when the path is
        missing, is not a directory or cannot be listed.
        """
        try:
            info = self.stat(path)
        except OSError as e:
            self._fail("list_names (stat)", e, path)
            return []
        if not info.is_dir:
            return []

        try:
            children = self.read_dir(path)
        except OSError as e:
            self._fail("list_names (read_dir)", e, path)
            return []
        return [DIR_MARKER + c.name if c.is_dir else c.name for c in children]

    def walk(self, path: PathLike) -> list[str]:
        """Recursively list a directory tree, depth first.

        Each level is visited in name order. Files appear as
        ``parent/child``; directories appear as ``*parent/child`` and are
        followed by their own entries. Children are statted following
        symbolic links, so a link to a directory is descended into.

        A directory already on the current descent path (a symlink loop)
        is listed but not entered again. Errors never raise: an
        unreadable root yields an empty list and an entry that cannot be
        statted is skipped.

        Example:
            For ``a/f.txt`` and ``a/b/g.txt``, ``walk("a")`` returns
            ``["*a/b", "a/b/g.txt", "a/f.txt"]``.
        """
        return self._walk(os.fspath(path), frozenset(), 1)

    def _walk(
        self, root: str, ancestors: frozenset[tuple[int, int]], depth: int
    ) -> list[str]:
        try:
            root_stat = os.stat(root)
            children = self.read_dir(root)
        except OSError:
            return []

        ancestors = ancestors | {(root_stat.st_dev, root_stat.st_ino)}
        paths: list[str] = []
        for child in children:
            full_path = root + "/" + child.name
            try:
                child_stat = os.stat(full_path)
            except OSError as e:
                self._fail("walk (stat)", e, full_path, depth)
                continue

            if not stat.S_ISDIR(child_stat.st_mode):
                paths.append(full_path)
                continue

            paths.append(DIR_MARKER + full_path)
            if (child_stat.st_dev, child_stat.st_ino) in ancestors:
                logger.debug("Not descending into %s: directory loop", full_path)
                continue
            paths.extend(self._walk(full_path, ancestors, depth + 1))
        return paths

    def exists(self, path: PathLike) -> bool:
        """Check if a path exists.

        Any error from the OS counts as "does not exist", so a path
        under a directory without search permission reports False.
        """
        try:
            os.stat(path)
        except (OSError, ValueError):
            return False
        return True

    def file_size(self, path: PathLike) -> int:
        """Get the size of a file in bytes."""
        try:
            return os.stat(path).st_size
        except OSError as e:
            self._fail("file_size", e, path)
            raise

    def file_size_or_zero(self, path: PathLike) -> int:
        """Get the size of a file in bytes, or 0 if it cannot be statted."""
        try:
            return os.stat(path).st_size
        except OSError:
            return 0

    def file_age(self, path: PathLike) -> timedelta:
        """Get the time elapsed since a file was last modified."""
        try:
            info = self.stat(path)
        except OSError as e:
            self._fail("file_age", e, path)
            raise
        return datetime.now() - info.last_modified

    # ------------------------------------------------------------------
    # Directories
    # ------------------------------------------------------------------

    def mkdir(self, path: PathLike, perm: int = DEFAULT_DIR_PERM) -> None:
        """Create a single directory."""
        name = clean_path(path)
        try:
            os.mkdir(name, perm)
        except OSError as e:
            self._fail("mkdir", e, name)
            raise

    def mkdir_all(self, path: PathLike, perm: int = DEFAULT_DIR_PERM) -> None:
        """Create a directory and any missing parents.

        Does nothing if the path already exists. Failures are raised
        without being recorded.
        """
        name = clean_path(path)
        if self.exists(name):
            return
        os.makedirs(name, perm, exist_ok=True)

    # ------------------------------------------------------------------
    # Copying
    # ------------------------------------------------------------------

    def copy_file(self, src: PathLike, dst: PathLike) -> None:
        """Copy a file's bytes and permission bits.

        The destination is flushed to stable storage before its mode is
        set to the source's permission bits. A failure part way leaves
        whatever was written in place. A missing source creates no
        destination.

        Raises:
            FileNotFoundError: If the source does not exist.
        """
        src = clean_path(src)
        dst = clean_path(dst)

        try:
            source = io.open(src, "rb")
        except OSError as e:
            self._fail("copy_file (open)", e, src)
            raise

        with source:
            try:
                target = io.open(dst, "wb")
            except OSError as e:
                self._fail("copy_file (create)", e, dst)
                raise

            with target:
                try:
                    shutil.copyfileobj(source, target)
                except OSError as e:
                    self._fail("copy_file (copy)", e, dst)
                    raise

                try:
                    target.flush()
                    os.fsync(target.fileno())
                except OSError as e:
                    self._fail("copy_file (sync)", e, dst)
                    raise

        try:
            mode = os.stat(src).st_mode
        except OSError as e:
            self._fail("copy_file (stat)", e, src)
            raise

        try:
            os.chmod(dst, stat.S_IMODE(mode))
        except OSError as e:
            self._fail("copy_file (chmod)", e, dst)
            raise

    def _missing(self, path: str) -> bool:
        """True only when stat reports the path as not found."""
        try:
            os.stat(path)
        except FileNotFoundError:
            return True
        except OSError:
            return False
        return False

    def copy_dir(self, src: PathLike, dst: PathLike) -> None:
        """Copy a directory tree into a destination that must not exist.

        Directories are recreated with the source directory's permission
        bits, files are copied with ``copy_file`` and symbolic links are
        skipped. The first failure aborts the copy and leaves the
        partial tree behind.

        Raises:
            SourceNotDirectoryError: If the source is not a directory.
            DestinationExistsError: If anything is found at the destination.
        """
        src = clean_path(src)
        dst = clean_path(dst)

        try:
            src_stat = os.stat(src)
        except OSError as e:
            self._fail("copy_dir (stat)", e, src)
            raise
        if not stat.S_ISDIR(src_stat.st_mode):
            raise SourceNotDirectoryError()

        if not self._missing(dst):
            error = DestinationExistsError()
            self._fail("copy_dir", error, dst)
            raise error

        try:
            os.makedirs(dst, stat.S_IMODE(src_stat.st_mode))
        except OSError as e:
            self._fail("copy_dir (makedirs)", e, dst)
            raise

        try:
            entries = _sorted_entries(src)
        except OSError as e:
            self._fail("copy_dir (scandir)", e, src)
            raise

        for entry in entries:
            src_path = os.path.join(src, entry.name)
            dst_path = os.path.join(dst, entry.name)

            if entry.is_dir(follow_symlinks=False):
                try:
                    self.copy_dir(src_path, dst_path)
                except OSError as e:
                    self._fail("copy_dir (copy_dir)", e, src_path)
                    self._fail("copy_dir (copy_dir)", e, dst_path)
                    raise
                continue

            if entry.is_symlink():
                logger.debug("Skipping symlink %s", src_path)
                continue

            try:
                self.copy_file(src_path, dst_path)
            except OSError as e:
                self._fail("copy_dir (copy_file)", e, src_path)
                self._fail("copy_dir (copy_file)", e, dst_path)
                raise

    def copy_dir_glob(self, src: PathLike, dst: PathLike, pattern: str) -> None:
        """Copy the entries of one directory that match a shell pattern.

        Only the source directory's own level is searched. The
        destination is created with the source's permission bits if it
        is missing; existing files in it are overwritten.

        Args:
            src: Source directory.
            dst: Destination directory.
            pattern: Shell pattern matched against entry names.

        Raises:
            SourceNotDirectoryError: If the source is missing or not a directory.
        """
        src = clean_path(src)
        dst = clean_path(dst)
        message = "source is not a directory or does not exist"

        try:
            info = self.stat(src)
        except OSError as e:
            self._fail("copy_dir_glob (stat)", e, src)
            raise SourceNotDirectoryError(message) from e
        if not info.is_dir:
            raise SourceNotDirectoryError(message)

        if not self.exists(dst):
            try:
                self.mkdir_all(dst, info.permissions)
            except OSError as e:
                self._fail("copy_dir_glob (mkdir_all)", e, dst)
                raise

        for item in self.glob(os.path.join(globbing.escape(src), pattern)):
            target = os.path.join(dst, os.path.basename(item))
            try:
                self.copy_file(item, target)
            except OSError as e:
                self._fail("copy_dir_glob (copy_file)", e, item)
                self._fail("copy_dir_glob (copy_file)", e, target)
                raise

    # ------------------------------------------------------------------
    # Pattern matching
    # ------------------------------------------------------------------

    def find_files(self, directory: PathLike, pattern: str) -> list[str]:
        """Find entries of one directory whose name matches a shell pattern.

        Matching is case-sensitive and not recursive. Returned paths are
        the directory joined with each matching name, in name order.

        Raises:
            BadPatternError: If a bracket expression is never closed.
        """
        directory = os.fspath(directory)
        _check_pattern(pattern)
        return [
            os.path.join(directory, entry.name)
            for entry in _sorted_entries(directory)
            if fnmatch.fnmatchcase(entry.name, pattern)
        ]

    def glob(self, pattern: str) -> list[str]:
        """Expand a shell pattern using the host matcher, sorted.

        Raises:
            BadPatternError: If a bracket expression is never closed.
        """
        _check_pattern(pattern)
        return sorted(globbing.glob(pattern))

    # ------------------------------------------------------------------
    # Removal and renaming
    # ------------------------------------------------------------------

    def _remove_entry(self, operation: str, path: PathLike) -> None:
        try:
            if stat.S_ISDIR(os.lstat(path).st_mode):
                os.rmdir(path)
            else:
                os.unlink(path)
        except OSError as e:
            self._fail(operation, e, path)
            raise

    def delete(self, path: PathLike) -> None:
        """Remove a file or an empty directory.

        Raises:
            FileNotFoundError: If the path does not exist.
            OSError: If the path is a non-empty directory.
        """
        self._remove_entry("delete", path)

    def remove(self, path: PathLike) -> None:
        """Remove a file or an empty directory."""
        self._remove_entry("remove", path)

    def remove_all(self, path: PathLike) -> None:
        """Remove a path and everything beneath it.

        A path that does not exist counts as removed. A path whose last
        element is ``.`` or ``..`` is refused with EINVAL before anything
        is deleted. Failures are raised without being recorded.
        """
        name = clean_path(path)
        if os.path.basename(name) in (".", ".."):
            raise OSError(errno.EINVAL, os.strerror(errno.EINVAL), name)
        try:
            mode = os.lstat(name).st_mode
        except FileNotFoundError:
            return
        if stat.S_ISDIR(mode):
            shutil.rmtree(name)
        else:
            os.unlink(name)

    def rename(self, old: PathLike, new: PathLike) -> None:
        """Rename or move a path with a single ``os.rename``.

        Identical names succeed without touching the filesystem, even if
        the path does not exist. Moving across filesystems fails rather
        than falling back to copy and delete.
        """
        if os.fspath(old) == os.fspath(new):
            logger.debug("Rename of %s onto itself skipped", old)
            return
        try:
            os.rename(old, new)
        except OSError as e:
            self._fail("rename", e, old)
            self._fail("rename", e, new)
            raise
