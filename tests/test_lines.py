"""Tests for the per-line token index."""

from mystindex.adapters.markdown_parser import MystParser
from mystindex.core.lines import LineIndex, build_line_index
from mystindex.core.model import Span, Token, TokenKind


def test_build_from_tokens():
    """Test that every spanned line records the covering token positions."""
    tokens = [
        Token(TokenKind.DIV_OPEN, Span(0, 3), nesting=1),
        Token(TokenKind.PARAGRAPH_OPEN, Span(1, 2), nesting=1, level=1),
        Token(TokenKind.PARAGRAPH_CLOSE, None, nesting=-1, level=1),
        Token(TokenKind.DIV_CLOSE, Span(2, 3), nesting=-1),
    ]

    index = build_line_index(tokens)

    assert index[0] == (0,)
    assert index[1] == (0, 1)
    assert index[2] == (0, 3)
    assert list(index) == [0, 1, 2]
    assert len(index) == 3


def test_uncovered_line_is_empty():
    """Test that blank or out-of-range lines yield no tokens."""
    index = build_line_index(MystParser().parse("# H\n\npara\nmore\n"))

    assert index[1] == ()
    assert index[99] == ()
    assert 1 not in index
    assert 2 in index


def test_paragraph_lines():
    """Test a multi-line paragraph is recorded on each of its lines."""
    tokens = MystParser().parse("# H\n\npara\nmore\n")
    index = build_line_index(tokens)

    # heading_open, inline, heading_close, paragraph_open, inline, paragraph_close
    assert index[0] == (0, 1)
    assert index[2] == (3, 4)
    assert index[3] == (3, 4)


def test_empty_index():
    """Test the default index."""
    index = LineIndex()

    assert index[0] == ()
    assert list(index.items()) == []


def test_items_sorted_by_line():
    """Test that items come back in line order."""
    tokens = [
        Token(TokenKind.HR, Span(5, 6)),
        Token(TokenKind.HR, Span(1, 2)),
    ]

    assert list(build_line_index(tokens).items()) == [(1, (1,)), (5, (0,))]
