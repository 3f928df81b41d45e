"""Line-span tracker: maps a source line to the tokens whose span covers it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Iterator

if TYPE_CHECKING:
    from .model import Token


@dataclass(frozen=True)
class LineIndex:
    """
    Read-only mapping from a 0-indexed line to the positions (in emission
    order) of every token spanning that line.

    Lines no token covers map to an empty tuple rather than raising.
    """

    _lines: dict[int, tuple[int, ...]] = field(default_factory=dict)

    def __getitem__(self, line: int) -> tuple[int, ...]:
        return self._lines.get(line, ())

    def __contains__(self, line: object) -> bool:
        return line in self._lines

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._lines))

    def __len__(self) -> int:
        return len(self._lines)

    def items(self) -> Iterator[tuple[int, tuple[int, ...]]]:
        for line in self:
            yield line, self._lines[line]


def build_line_index(tokens: Iterable["Token"]) -> LineIndex:
    """
    Record each token's position against every line in ``[span.start, span.end)``.

    Tokens without a span are skipped. Cost is linear in the total number of
    spanned lines.
    """
    lines: dict[int, list[int]] = {}
    for i, token in enumerate(tokens):
        if token.span is None:
            continue
        for line in range(token.span.start, token.span.end):
            lines.setdefault(line, []).append(i)
    return LineIndex({line: tuple(idxs) for line, idxs in lines.items()})
