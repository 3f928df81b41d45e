import logging
from collections import defaultdict
from typing import Callable, Iterable, Iterator

from ..core.model import Target, Uri
from ..core.ports import TargetStore

logger = logging.getLogger(__name__)


class ProjectTargetIndex(TargetStore):
    """
    Every ``(name)=`` target seen in the project, for the lifetime of a
    session. Append-only on write; deduplication happens on read.
    """

    def __init__(self) -> None:
        self._targets: list[Target] = []
        self._by_name: dict[str, list[Target]] = defaultdict(list)

    def __len__(self) -> int:
        return len(self._targets)

    def insert_targets(self, targets: Iterable[Target]) -> None:
        for target in targets:
            self._targets.append(target)
            self._by_name[target.name].append(target)

    def remove_uri(self, uri: Uri) -> int:
        kept = [t for t in self._targets if t.uri != uri]
        removed = len(self._targets) - len(kept)
        if not removed:
            return 0
        self._targets = kept
        self._by_name = defaultdict(list)
        for target in kept:
            self._by_name[target.name].append(target)
        logger.debug("Removed %d target(s) owned by %s", removed, uri)
        return removed

    def clear(self) -> None:
        self._targets.clear()
        self._by_name.clear()

    def get_targets(self, name: str) -> list[Target]:
        return list(self._by_name.get(name, ()))

    def iter_targets(
        self,
        distinct: bool = True,
        predicate: Callable[[Target], bool] | None = None,
    ) -> Iterator[Target]:
        """
        Targets in insertion order, optionally pre-filtered by ``predicate``.
        With ``distinct``, only the first-inserted target per name is yielded.
        """
        seen: set[str] = set()
        for target in list(self._targets):
            if predicate is not None and not predicate(target):
                continue
            if distinct:
                if target.name in seen:
                    continue
                seen.add(target.name)
            yield target
