"""Path normalization applied before most facade operations."""

from __future__ import annotations

import os


def clean_path(path: str | os.PathLike[str]) -> str:
    """Normalize a path the way the facade expects it.

    Collapses redundant separators and ``.``/``..`` segments, then drops
    everything up to and including the first colon, so a drive-letter
    style prefix such as ``C:`` disappears. Symbolic links are not
    resolved and the path is not made absolute.

    Args:
        path: Path to normalize.

    Returns:
        The normalized path as a string.

    Example:
        >>> clean_path("C:/data//logs/../app.log")
        '/data/app.log'
    """
    cleaned = os.path.normpath(os.fspath(path))
    # POSIX normpath keeps a leading "//"
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    _, sep, rest = cleaned.partition(":")
    if sep:
        cleaned = rest
    return cleaned
