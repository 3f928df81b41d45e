"""Parse orchestration: text -> tokens -> line index, definitions and targets."""

import logging
from typing import Callable, Iterable, Iterator

from .lines import build_line_index
from .model import (
    Analysis,
    Definition,
    DefinitionMeta,
    DocumentSnapshot,
    Target,
    Token,
    TokenKind,
    Uri,
)
from .ports import BlockParser, DocumentStore, TargetStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def collect_definitions(tokens: Iterable[Token]) -> tuple[Definition, ...]:
    """Definitions in document order, first occurrence per key."""
    seen: set[str] = set()
    out: list[Definition] = []
    for token in tokens:
        meta = token.metadata
        if token.kind is not TokenKind.DEFINITION or not isinstance(meta, DefinitionMeta):
            continue
        if meta.key in seen:
            continue
        seen.add(meta.key)
        out.append(Definition(key=meta.key, href=meta.href, title=meta.title))
    return tuple(out)


def collect_targets(uri: Uri, tokens: Iterable[Token]) -> tuple[Target, ...]:
    return tuple(
        Target(name=token.content, uri=uri, line=token.span.start)
        for token in tokens
        if token.kind is TokenKind.MYST_TARGET and token.span is not None
    )


def analyze(uri: Uri, text: str, parser: BlockParser) -> Analysis:
    """
    Parse one document in full and derive everything the caches need.

    Pure: nothing is published. The parser carries the parsing
    configuration (which extensions are enabled).
    """
    tokens = tuple(parser.parse(text))
    return Analysis(
        tokens=tokens,
        line_index=build_line_index(tokens),
        definitions=collect_definitions(tokens),
        targets=collect_targets(uri, tokens),
    )


class Workspace:
    """
    One editing session: the parser plus the two caches it feeds.

    Only this class writes to the caches; query code reads through
    ``get_data``, ``iter_definitions``, ``get_targets`` and ``iter_targets``.
    """

    def __init__(
        self, parser: BlockParser, documents: DocumentStore, targets: TargetStore
    ):
        self.parser = parser
        self.documents = documents
        self.targets = targets

    # -- open documents -------------------------------------------------

    def update_document(
        self, uri: Uri, text: str, version: int | None = None
    ) -> DocumentSnapshot:
        """Re-parse an open document and replace everything cached for it."""
        result = analyze(uri, text, self.parser)
        snapshot = DocumentSnapshot(
            uri=uri,
            tokens=result.tokens,
            line_index=result.line_index,
            definitions=result.definitions,
            version=version,
            text=text,
        )
        self.targets.remove_uri(uri)
        self.documents.set_data(uri, snapshot)
        self.targets.insert_targets(result.targets)
        logger.debug(
            "Parsed %s (version %s): %d tokens, %d definitions, %d targets",
            uri,
            version,
            len(result.tokens),
            len(result.definitions),
            len(result.targets),
        )
        return snapshot

    def close_document(self, uri: Uri) -> None:
        """Drop a closed document (a notebook takes its cells along)."""
        removed = self.documents.remove_uri(uri)
        for dropped in dict.fromkeys([uri, *removed]):
            self.targets.remove_uri(dropped)

    # -- notebooks ------------------------------------------------------

    def update_cell(
        self, notebook: Uri, cell: Uri, text: str, version: int | None = None
    ) -> DocumentSnapshot:
        self.documents.set_parent_to_child_uri(notebook, cell)
        return self.update_document(cell, text, version)

    def open_notebook(
        self, notebook: Uri, cells: Iterable[tuple[Uri, str]]
    ) -> list[DocumentSnapshot]:
        return [self.update_cell(notebook, cell, text) for cell, text in cells]

    def close_notebook(self, notebook: Uri) -> None:
        self.close_document(notebook)

    # -- files on disk --------------------------------------------------

    def remove_file(self, uri: Uri) -> None:
        """A file was deleted from disk (a notebook takes its cells along)."""
        self.close_document(uri)

    def refresh_file(self, uri: Uri, text: str) -> bool:
        """
        Re-index the targets of a file changed on disk. Open documents are
        skipped, the editor buffer is authoritative for them.
        """
        if self.documents.get_data(uri) is not None:
            return False
        result = analyze(uri, text, self.parser)
        self.targets.remove_uri(uri)
        self.targets.insert_targets(result.targets)
        return True

    def analyze_project(
        self,
        documents: Iterable[tuple[Uri, str]],
        progress: ProgressCallback | None = None,
    ) -> int:
        """
        Rebuild the target index from scratch. Open-document snapshots are
        left alone; closed files need no line index.
        """
        items = list(documents)
        total = len(items)
        self.targets.clear()
        for done, (uri, text) in enumerate(items, start=1):
            result = analyze(uri, text, self.parser)
            self.targets.insert_targets(result.targets)
            if progress is not None:
                progress(done, total)
        logger.info("Analyzed %d project file(s)", total)
        return total

    def reconfigure(self, parser: BlockParser) -> None:
        """Swap the parser and re-parse every open document with it."""
        self.parser = parser
        for uri in self.documents.uris():
            snapshot = self.documents.get_data(uri)
            if snapshot is not None:
                self.update_document(uri, snapshot.text, snapshot.version)

    # -- read surface ---------------------------------------------------

    def get_data(self, uri: Uri) -> DocumentSnapshot | None:
        return self.documents.get_data(uri)

    def iter_definitions(self, uri: Uri, distinct: bool = True) -> Iterator[Definition]:
        return self.documents.iter_definitions(uri, distinct)

    def get_targets(self, name: str) -> list[Target]:
        return self.targets.get_targets(name)

    def iter_targets(
        self,
        distinct: bool = True,
        predicate: Callable[[Target], bool] | None = None,
    ) -> Iterator[Target]:
        return self.targets.iter_targets(distinct, predicate)
