from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Union

from .lines import LineIndex

Uri = str


class TokenKind(str, Enum):
    """Block token kinds, valued by their markdown-it type names."""

    # CommonMark blocks
    PARAGRAPH_OPEN = "paragraph_open"
    PARAGRAPH_CLOSE = "paragraph_close"
    HEADING_OPEN = "heading_open"
    HEADING_CLOSE = "heading_close"
    BLOCKQUOTE_OPEN = "blockquote_open"
    BLOCKQUOTE_CLOSE = "blockquote_close"
    BULLET_LIST_OPEN = "bullet_list_open"
    BULLET_LIST_CLOSE = "bullet_list_close"
    ORDERED_LIST_OPEN = "ordered_list_open"
    ORDERED_LIST_CLOSE = "ordered_list_close"
    LIST_ITEM_OPEN = "list_item_open"
    LIST_ITEM_CLOSE = "list_item_close"
    CODE_BLOCK = "code_block"
    FENCE = "fence"
    HTML_BLOCK = "html_block"
    HR = "hr"
    INLINE = "inline"

    # tables
    TABLE_OPEN = "table_open"
    TABLE_CLOSE = "table_close"
    THEAD_OPEN = "thead_open"
    THEAD_CLOSE = "thead_close"
    TBODY_OPEN = "tbody_open"
    TBODY_CLOSE = "tbody_close"
    TR_OPEN = "tr_open"
    TR_CLOSE = "tr_close"
    TH_OPEN = "th_open"
    TH_CLOSE = "th_close"
    TD_OPEN = "td_open"
    TD_CLOSE = "td_close"

    # MyST extensions
    FRONT_MATTER = "front_matter"
    DIV_OPEN = "div_open"
    DIV_CLOSE = "div_close"
    MYST_TARGET = "myst_target"
    MYST_LINE_COMMENT = "myst_line_comment"
    MYST_BLOCK_BREAK = "myst_block_break"
    DEFINITION = "definition"


@dataclass(frozen=True)
class Span:
    start: int  # first line, 0-indexed
    end: int  # exclusive

    def __contains__(self, line: object) -> bool:
        return isinstance(line, int) and self.start <= line < self.end

    def __len__(self) -> int:
        return max(self.end - self.start, 0)

    def lines(self) -> range:
        return range(self.start, self.end)


@dataclass(frozen=True)
class DivMeta:
    options: Mapping[str, Any] | None = None
    option_error: str | None = None
    option_span: Span | None = None
    closed: bool = False  # False when auto-closed by the enclosing block or EOF


@dataclass(frozen=True)
class DefinitionMeta:
    key: str  # normalized label
    label: str  # raw label text
    href: str
    title: str = ""


@dataclass(frozen=True)
class FrontMatterMeta:
    data: Mapping[str, Any] | None = None
    error: str | None = None


TokenMeta = Union[DivMeta, DefinitionMeta, FrontMatterMeta, None]


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    span: Span | None = None
    content: str = ""
    markup: str = ""
    info: str = ""
    nesting: int = 0  # 1 opens, -1 closes, 0 self-contained
    level: int = 0
    metadata: TokenMeta = None


@dataclass(frozen=True)
class Definition:
    key: str
    href: str
    title: str = ""


@dataclass(frozen=True)
class Target:
    name: str
    uri: Uri
    line: int | None = None


@dataclass(frozen=True)
class Analysis:
    """Everything a single parse of one document yields."""

    tokens: tuple[Token, ...]
    line_index: LineIndex
    definitions: tuple[Definition, ...]
    targets: tuple[Target, ...]


@dataclass(frozen=True)
class DocumentSnapshot:
    """Cached state for one open document, replaced wholesale on re-parse."""

    uri: Uri
    tokens: tuple[Token, ...]
    line_index: LineIndex
    definitions: tuple[Definition, ...]
    version: int | None = None
    text: str = field(default="", repr=False)

    def tokens_on_line(self, line: int) -> Iterator[Token]:
        for i in self.line_index[line]:
            yield self.tokens[i]


def freeze_mapping(data: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    if data is None:
        return None
    return MappingProxyType(dict(data))
