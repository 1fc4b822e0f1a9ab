"""Failure recorders for the filesystem facade.

A recorder receives every failed facade step. The facade never looks at
what a recorder does with it, so recording cannot change the error that
reaches the caller.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from gmsfs.types import FailureRecord

if TYPE_CHECKING:
    from gmsfs.protocols import FailureRecorder

logger = logging.getLogger(__name__)

# Log file name: prefix + timestamp + suffix, one file per calendar minute
LOG_TIME_FORMAT = "%Y%m%d_%H%M"
LOG_SUFFIX = ".log"
DEFAULT_LOG_PREFIX = "GMSFS."
DEFAULT_SENTINEL = "GMSFS.Debug"

FAILURE_FORMAT = (
    "%(message)s stacktrace: (2):%(funcName)s file: %(pathname)s line: %(lineno)d"
)


class DatedFileHandler(logging.Handler):
    """Logging handler appending each record to a minute-stamped file.

    The file name is computed from the clock on every record, so a new
    file starts whenever the calendar minute changes. Nothing is kept
    open between records.
    """

    def __init__(
        self,
        directory: Path,
        prefix: str = DEFAULT_LOG_PREFIX,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the handler.

        Args:
            directory: Directory that receives the log files.
            prefix: File name prefix, e.g. ``"GMSFS."``.
            clock: Source of the current time.
        """
        super().__init__()
        self.directory = Path(directory)
        self.prefix = prefix
        self.clock = clock

    def current_path(self) -> Path:
        """Path of the log file for the current minute."""
        stamp = self.clock().strftime(LOG_TIME_FORMAT)
        return self.directory / f"{self.prefix}{stamp}{LOG_SUFFIX}"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            with open(self.current_path(), "a", encoding="utf-8") as stream:
                stream.write(line + "\n")
        except Exception:
            self.handleError(record)

    def handleError(self, record: logging.LogRecord) -> None:
        # Failure logging is best effort; a broken log never surfaces.
        pass


class NullRecorder:
    """Recorder that discards every failure."""

    def record_failure(
        self,
        operation: str,
        error: BaseException,
        path: str = "",
        stacklevel: int = 1,
    ) -> None:
        pass


class MemoryRecorder:
    """Recorder that keeps failures in memory for later inspection."""

    def __init__(self) -> None:
        self.records: list[FailureRecord] = []

    def record_failure(
        self,
        operation: str,
        error: BaseException,
        path: str = "",
        stacklevel: int = 1,
    ) -> None:
        self.records.append(FailureRecord(operation=operation, error=error, path=path))

    @property
    def operations(self) -> list[str]:
        """Labels of the recorded failures in order."""
        return [r.operation for r in self.records]


class LogFileRecorder:
    """Recorder writing one line per failure to a dated log file.

    Each line carries the operation label, the error text, the path and
    the function, file and line of the code that called the facade.
    """

    def __init__(
        self,
        log_dir: Path | None = None,
        prefix: str = DEFAULT_LOG_PREFIX,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the recorder.

        Args:
            log_dir: Directory for log files. Defaults to the working directory.
            prefix: Log file name prefix.
            clock: Source of the current time.
        """
        self.handler = DatedFileHandler(log_dir or Path("."), prefix, clock)
        self.handler.setFormatter(logging.Formatter(FAILURE_FORMAT))
        # Private logger so records never reach the application's handlers
        self._logger = logging.Logger("gmsfs.failures", logging.ERROR)
        self._logger.propagate = False
        self._logger.addHandler(self.handler)

    def record_failure(
        self,
        operation: str,
        error: BaseException,
        path: str = "",
        stacklevel: int = 1,
    ) -> None:
        record = FailureRecord(operation=operation, error=error, path=path)
        logger.debug("Recording failure: %s", record)
        self._logger.error("%s", record, stacklevel=stacklevel + 1)


class SentinelRecorder:
    """Recorder that forwards only while a sentinel file exists.

    The sentinel is checked again on every failure, so creating or
    deleting the file toggles logging for a running process.
    """

    def __init__(self, inner: FailureRecorder, sentinel: Path | None = None) -> None:
        """Initialize the recorder.

        Args:
            inner: Recorder that receives failures while enabled.
            sentinel: Marker file path. Defaults to ``GMSFS.Debug`` in
                the working directory.
        """
        self.inner = inner
        self.sentinel = sentinel or Path(DEFAULT_SENTINEL)

    def enabled(self) -> bool:
        """Check whether the sentinel currently enables recording."""
        try:
            os.stat(self.sentinel)
        except FileNotFoundError:
            return False
        except OSError:
            # Only a definite "not found" disables recording
            return True
        return True

    def record_failure(
        self,
        operation: str,
        error: BaseException,
        path: str = "",
        stacklevel: int = 1,
    ) -> None:
        if not self.enabled():
            return
        self.inner.record_failure(operation, error, path, stacklevel=stacklevel + 1)
