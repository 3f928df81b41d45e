"""Utility functions for mystindex."""

from pathlib import Path
from urllib.parse import unquote, urlparse


def path_to_uri(path: Path) -> str:
    """
    Absolute ``file://`` URI for a filesystem path.

    Examples:
        >>> path_to_uri(Path("/docs/intro.md"))
        'file:///docs/intro.md'
    """
    return path.resolve().as_uri()


def uri_to_path(uri: str) -> Path | None:
    """
    Filesystem path for a ``file://`` URI; ``None`` for any other scheme
    (notebook cells, untitled buffers).
    """
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return None
    return Path(unquote(parsed.path))
