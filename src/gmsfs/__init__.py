"""Thin facade over local filesystem calls with optional failure logging."""

__version__ = "0.1.0"

# Export the facade and its interfaces for type hints and dependency injection
from gmsfs.filesystem import LocalFileSystem
from gmsfs.paths import clean_path
from gmsfs.protocols import FailureRecorder, FileSystem
from gmsfs.types import (
    BadPatternError,
    DestinationExistsError,
    FileMetadata,
    GmsfsError,
    SourceNotDirectoryError,
)

__all__ = [
    "__version__",
    "BadPatternError",
    "DestinationExistsError",
    "FailureRecorder",
    "FileMetadata",
    "FileSystem",
    "GmsfsError",
    "LocalFileSystem",
    "SourceNotDirectoryError",
    "clean_path",
]
