"""In-memory snapshots of open documents and notebook cells."""

import logging
from typing import Iterator

from ..core.model import Definition, DocumentSnapshot, Uri
from ..core.ports import DocumentStore

logger = logging.getLogger(__name__)


class DocumentCache(DocumentStore):
    """
    Holds the latest snapshot per open URI, and which notebook each cell
    belongs to. Cells of one notebook share a definition namespace.
    """

    def __init__(self) -> None:
        self._data: dict[Uri, DocumentSnapshot] = {}
        # dicts used as insertion-ordered sets
        self._children: dict[Uri, dict[Uri, None]] = {}
        self._parent: dict[Uri, Uri] = {}

    def __contains__(self, uri: object) -> bool:
        return uri in self._data

    def __len__(self) -> int:
        return len(self._data)

    def uris(self) -> list[Uri]:
        return list(self._data)

    def set_data(self, uri: Uri, snapshot: DocumentSnapshot) -> None:
        self._data[uri] = snapshot

    def get_data(self, uri: Uri) -> DocumentSnapshot | None:
        return self._data.get(uri)

    def parent_of(self, uri: Uri) -> Uri | None:
        return self._parent.get(uri)

    def children_of(self, uri: Uri) -> list[Uri]:
        return list(self._children.get(uri, ()))

    def set_parent_to_child_uri(self, parent: Uri, child: Uri) -> None:
        previous = self._parent.get(child)
        if previous == parent:
            return
        if previous is not None:
            self._detach(previous, child)
        self._children.setdefault(parent, {})[child] = None
        self._parent[child] = parent

    def _detach(self, parent: Uri, child: Uri) -> None:
        siblings = self._children.get(parent)
        if siblings is None:
            return
        siblings.pop(child, None)
        if not siblings:
            del self._children[parent]

    def remove_uri(self, uri: Uri) -> list[Uri]:
        """
        Forget ``uri``. A notebook takes its cells with it; a cell is
        detached from its notebook. Returns every URI whose snapshot or
        relation was dropped (empty for unknown URIs).
        """
        removed: list[Uri] = []
        if self._data.pop(uri, None) is not None:
            removed.append(uri)

        for child in self._children.pop(uri, {}):
            self._parent.pop(child, None)
            self._data.pop(child, None)
            removed.append(child)

        parent = self._parent.pop(uri, None)
        if parent is not None:
            self._detach(parent, uri)
            if uri not in removed:
                removed.append(uri)

        if removed:
            logger.debug("Dropped %d cached document(s) for %s", len(removed), uri)
        return removed

    def clear(self) -> None:
        self._data.clear()
        self._children.clear()
        self._parent.clear()

    def iter_definitions(self, uri: Uri, distinct: bool = True) -> Iterator[Definition]:
        """
        Definitions visible from ``uri``: its own, then those of its sibling
        cells in notebook order. With ``distinct``, the first definition per
        key wins. Each call scans afresh.
        """
        sources = [uri]
        parent = self._parent.get(uri)
        if parent is not None:
            sources.extend(c for c in self._children.get(parent, ()) if c != uri)

        seen: set[str] = set()
        for source in sources:
            snapshot = self._data.get(source)
            if snapshot is None:
                continue
            for definition in snapshot.definitions:
                if distinct:
                    if definition.key in seen:
                        continue
                    seen.add(definition.key)
                yield definition
