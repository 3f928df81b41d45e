"""
Single-line and line-run MyST block rules for markdown-it:

- ``(label)=`` targets
- ``% comment`` runs
- ``+++`` block breaks
"""

import re

from markdown_it import MarkdownIt
from markdown_it.common.utils import isStrSpace
from markdown_it.rules_block import StateBlock

TARGET_CHARS = r"[a-zA-Z0-9|@<>*./_\-+:]"
TARGET_MAX_LENGTH = 100
TARGET_PATTERN = re.compile(
    rf"^\((?P<label>{TARGET_CHARS}{{1,{TARGET_MAX_LENGTH}}})\)=\s*$"
)
TARGET_NAME_PATTERN = re.compile(rf"^{TARGET_CHARS}{{1,{TARGET_MAX_LENGTH}}}$")

_ALT = ["paragraph", "reference", "blockquote", "list"]


def is_valid_target_name(name: str) -> bool:
    """Whether ``name`` is acceptable as a ``(name)=`` label."""
    return TARGET_NAME_PATTERN.match(name) is not None


def myst_blocks_plugin(md: MarkdownIt) -> None:
    md.block.ruler.before(
        "blockquote", "myst_line_comment", line_comment, {"alt": _ALT}
    )
    md.block.ruler.before("hr", "myst_block_break", block_break, {"alt": _ALT})
    md.block.ruler.before("hr", "myst_target", target, {"alt": _ALT})


def _indented_code(state: StateBlock, line: int) -> bool:
    return state.sCount[line] - state.blkIndent >= 4


def line_comment(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    pos = state.bMarks[startLine] + state.tShift[startLine]
    maximum = state.eMarks[startLine]

    if _indented_code(state, startLine):
        return False
    if state.src[pos : pos + 1] != "%":
        return False
    if silent:
        return True

    content = [state.src[pos + 1 : maximum].rstrip()]
    nextLine = startLine + 1
    while nextLine < endLine:
        pos = state.bMarks[nextLine] + state.tShift[nextLine]
        maximum = state.eMarks[nextLine]
        if state.src[pos : pos + 1] != "%":
            break
        content.append(state.src[pos + 1 : maximum].rstrip())
        nextLine += 1

    token = state.push("myst_line_comment", "", 0)
    token.attrSet("class", "myst-line-comment")
    token.content = "\n".join(content)
    token.markup = "%"
    token.map = [startLine, nextLine]
    state.line = nextLine
    return True


def block_break(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    pos = state.bMarks[startLine] + state.tShift[startLine]
    maximum = state.eMarks[startLine]

    if _indented_code(state, startLine):
        return False
    marker = state.src[pos : pos + 1]
    if marker != "+":
        return False

    # markers may be interspersed with spaces, but need at least 3 of them
    count = 1
    pos += 1
    while pos < maximum:
        ch = state.src[pos]
        if ch != marker and not isStrSpace(ch):
            break
        if ch == marker:
            count += 1
        pos += 1

    if count < 3:
        return False
    if silent:
        return True

    state.line = startLine + 1
    token = state.push("myst_block_break", "hr", 0)
    token.attrSet("class", "myst-block")
    token.content = state.src[pos:maximum].strip()
    token.map = [startLine, state.line]
    token.markup = marker * count
    return True


def target(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    pos = state.bMarks[startLine] + state.tShift[startLine]
    maximum = state.eMarks[startLine]

    if _indented_code(state, startLine):
        return False
    match = TARGET_PATTERN.match(state.src[pos:maximum])
    if not match:
        return False
    if silent:
        return True

    state.line = startLine + 1
    token = state.push("myst_target", "", 0)
    token.attrSet("class", "myst-target")
    token.content = match.group("label")
    token.map = [startLine, state.line]
    return True

