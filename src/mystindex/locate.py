"""Line-scoped and name-scoped lookups over the caches."""

from dataclasses import fields
from typing import Any, Iterable, Mapping

from .adapters.definitions import normalize_key
from .core.model import (
    Definition,
    DocumentSnapshot,
    Span,
    Target,
    Token,
    TokenKind,
    Uri,
)
from .core.ports import DocumentStore, TargetStore


def tokens_at(snapshot: DocumentSnapshot, line: int) -> list[Token]:
    """Tokens whose span covers ``line``, outermost first."""
    return list(snapshot.tokens_on_line(line))


def folding_ranges(
    snapshot: DocumentSnapshot, kinds: Iterable[TokenKind]
) -> list[tuple[int, int]]:
    """
    ``(start, end)`` line pairs, end inclusive, for tokens of the given kinds
    that span more than one line.
    """
    wanted = set(kinds)
    ranges = []
    for token in snapshot.tokens:
        if token.span is None or token.kind not in wanted:
            continue
        if token.span.end - 1 > token.span.start:
            ranges.append((token.span.start, token.span.end - 1))
    return ranges


def lookup_definition(cache: DocumentStore, uri: Uri, label: str) -> Definition | None:
    """Resolve ``[text][label]`` as seen from ``uri`` (sibling cells included)."""
    key = normalize_key(label)
    for definition in cache.iter_definitions(uri, distinct=True):
        if definition.key == key:
            return definition
    return None


def locate_target(targets: TargetStore, name: str) -> list[Target]:
    """All declarations of ``name`` across the project, in insertion order."""
    return targets.get_targets(name)


def token_to_dict(index: int, token: Token) -> dict[str, Any]:
    """JSON-ready view of a token."""
    result: dict[str, Any] = {
        "index": index,
        "kind": token.kind.value,
        "span": [token.span.start, token.span.end] if token.span else None,
    }
    if token.content:
        result["content"] = token.content
    if token.markup:
        result["markup"] = token.markup
    if token.info:
        result["info"] = token.info
    if token.metadata is not None:
        result["metadata"] = {
            f.name: _plain(getattr(token.metadata, f.name))
            for f in fields(token.metadata)
        }
    return result


def _plain(value: Any) -> Any:
    if isinstance(value, Span):
        return [value.start, value.end]
    if isinstance(value, Mapping):
        return dict(value)
    return value
