import logging
import re
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from ..core.model import Uri
from ..core.ports import DocumentSource
from ..core.utils import path_to_uri, uri_to_path

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE = ("**/*.md", "**/*.myst")


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """
    Regex matching root-relative POSIX paths the way ``Path.glob(pattern)``
    selects them: ``**`` spans zero or more directories, ``*`` and ``?``
    stay within one path component.

    Examples:
        >>> bool(glob_to_regex("**/*.md").fullmatch("a.md"))
        True
        >>> bool(glob_to_regex("docs/*.md").fullmatch("other/x.md"))
        False
    """
    out = []
    segments = pattern.split("/")
    for i, segment in enumerate(segments):
        last = i == len(segments) - 1
        if segment == "**":
            out.append(".*" if last else "(?:[^/]+/)*")
            continue
        for ch in segment:
            if ch == "*":
                out.append("[^/]*")
            elif ch == "?":
                out.append("[^/]")
            else:
                out.append(re.escape(ch))
        if not last:
            out.append("/")
    return re.compile("".join(out))


class FsStorage(DocumentSource):
    """
    Project files under ``root`` matching the ``include`` globs. Hidden files
    and anything inside hidden directories are ignored.
    """

    def __init__(self, root: Path, include: Sequence[str] = DEFAULT_INCLUDE):
        self.root = root
        self.include = tuple(include)
        self._patterns = [glob_to_regex(p) for p in self.include]

    def _hidden(self, path: Path) -> bool:
        rel = path.relative_to(self.root)
        return any(part.startswith(".") for part in rel.parts)

    def _relative(self, path: Path) -> Path | None:
        try:
            return path.resolve().relative_to(self.root.resolve())
        except ValueError:
            return None

    def list_paths(self) -> list[Path]:
        if not self.root.exists():
            return []
        found: dict[Path, None] = {}
        for pattern in self.include:
            for p in sorted(self.root.glob(pattern)):
                if p.is_file() and not self._hidden(p):
                    found[p] = None
        return list(found)

    def matches(self, path: Path) -> bool:
        """Whether ``path`` would be picked up by a scan, even if it no longer exists."""
        rel = self._relative(path)
        if rel is None or any(part.startswith(".") for part in rel.parts):
            return False
        posix = rel.as_posix()
        return any(p.fullmatch(posix) for p in self._patterns)

    def read(self, uri: Uri) -> str | None:
        path = uri_to_path(uri)
        if path is None or not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def iter_documents(self) -> Iterable[tuple[Uri, str]]:
        return self._iter_documents(self.list_paths())

    def _iter_documents(self, paths: list[Path]) -> Iterator[tuple[Uri, str]]:
        for p in paths:
            try:
                text = p.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable file %s: %s", p, exc)
                continue
            yield path_to_uri(p), text
