from typing import Callable, Iterable, Iterator, Protocol

from .model import Definition, DocumentSnapshot, Target, Token, Uri


class BlockParser(Protocol):
    """
    Segment MyST text into block tokens. Deterministic; the parser's
    configuration (enabled extensions) is bound when it is built.
    """

    def parse(self, text: str) -> list[Token]:
        pass


class DocumentStore(Protocol):
    """
    Snapshots of currently open documents and notebook cells, keyed by URI.
    """

    def set_data(self, uri: Uri, snapshot: DocumentSnapshot) -> None:
        pass

    def get_data(self, uri: Uri) -> DocumentSnapshot | None:
        pass

    def uris(self) -> list[Uri]:
        pass

    def remove_uri(self, uri: Uri) -> list[Uri]:
        pass

    def set_parent_to_child_uri(self, parent: Uri, child: Uri) -> None:
        pass

    def iter_definitions(self, uri: Uri, distinct: bool = True) -> Iterator[Definition]:
        pass


class TargetStore(Protocol):
    """
    Project-wide named targets; not deduplicated on write.
    """

    def insert_targets(self, targets: Iterable[Target]) -> None:
        pass

    def remove_uri(self, uri: Uri) -> int:
        pass

    def clear(self) -> None:
        pass

    def get_targets(self, name: str) -> list[Target]:
        pass

    def iter_targets(
        self,
        distinct: bool = True,
        predicate: Callable[[Target], bool] | None = None,
    ) -> Iterator[Target]:
        pass


class DocumentSource(Protocol):
    """
    Read access to project files that may not be open in the editor.
    """

    def read(self, uri: Uri) -> str | None:
        pass

    def iter_documents(self) -> Iterable[tuple[Uri, str]]:
        pass
