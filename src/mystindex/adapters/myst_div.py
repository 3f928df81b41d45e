"""
Colon-fenced ``div`` containers::

    :::{note}
    :class: tip
    Nested *MyST* content.
    :::

Lines directly after the opening fence that start with a single ``:`` form a
YAML option block; the rest of the body is tokenized recursively.
"""

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock

from ..exceptions import OptionsError
from .yaml_codec import load_mapping, strip_option_markers

MARKER = ":"
MIN_MARKERS = 3


def myst_div_plugin(md: MarkdownIt) -> None:
    md.block.ruler.before(
        "fence", "div", div, {"alt": ["paragraph", "reference", "blockquote", "list"]}
    )


def _marker_run(src: str, pos: int, maximum: int) -> int:
    """End position of the run of ``:`` starting at ``pos``."""
    while pos < maximum and src[pos] == MARKER:
        pos += 1
    return pos


def div(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    start = state.bMarks[startLine] + state.tShift[startLine]
    maximum = state.eMarks[startLine]

    if state.sCount[startLine] - state.blkIndent >= 4:
        return False
    if state.src[start : start + 1] != MARKER:
        return False

    pos = _marker_run(state.src, start + 1, maximum)
    marker_count = pos - start
    if marker_count < MIN_MARKERS:
        return False

    markup = state.src[start:pos]
    params = state.src[pos:maximum]

    if silent:
        return True

    nextLine = startLine
    closed = False
    close_markup = ""
    in_options = True
    options_end: int | None = None

    while True:
        nextLine += 1
        if nextLine >= endLine:
            # unclosed: ends with the enclosing block (or the document)
            break

        start = state.bMarks[nextLine] + state.tShift[nextLine]
        maximum = state.eMarks[nextLine]

        if start < maximum and state.sCount[nextLine] < state.blkIndent:
            # non-empty line with negative indent closes the parent list item
            break

        if (
            in_options
            and state.src[start : start + 1] == MARKER
            and state.src[start + 1 : start + 2] != MARKER
            and state.sCount[nextLine] - state.blkIndent <= 3
        ):
            options_end = nextLine
        else:
            in_options = False

        if state.src[start : start + 1] != MARKER:
            continue
        if state.sCount[nextLine] - state.blkIndent >= 4:
            continue

        pos = _marker_run(state.src, start + 1, maximum)
        # closing fence must be at least as long as the opening one
        if pos - start < marker_count:
            continue
        run_end = pos
        pos = state.skipSpaces(pos)
        if pos < maximum:
            continue

        closed = True
        close_markup = state.src[start:run_end]
        break

    meta: dict = {"closed": closed}
    body_start = startLine + 1
    if options_end is not None:
        text = state.getLines(startLine + 1, options_end + 1, state.blkIndent, False)
        meta["option_map"] = [startLine + 1, options_end + 1]
        try:
            meta["options"] = load_mapping(strip_option_markers(text))
        except OptionsError as exc:
            meta["option_error"] = exc.message
        body_start = options_end + 1

    old_parent = state.parentType
    old_line_max = state.lineMax
    state.parentType = "div"
    # keeps lazy continuation lines from running past the closing fence
    state.lineMax = nextLine

    token = state.push("div_open", "div", 1)
    token.markup = markup
    token.block = True
    token.info = params
    token.map = [startLine, nextLine + (1 if closed else 0)]
    token.meta = meta

    state.md.block.tokenize(state, body_start, nextLine)

    token = state.push("div_close", "div", -1)
    token.markup = close_markup
    token.block = True
    if closed:
        token.map = [nextLine, nextLine + 1]

    state.parentType = old_parent
    state.lineMax = old_line_max
    state.line = nextLine + (1 if closed else 0)
    return True
