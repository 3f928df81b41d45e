"""
Link reference definitions (``[label]: destination "title"``).

The stock markdown-it ``reference`` rule only records definitions in
``env["references"]``; this replacement follows the same grammar but also
emits a ``definition`` token so every definition has a position.
"""

from markdown_it import MarkdownIt
from markdown_it.common.utils import isStrSpace, normalizeReference
from markdown_it.helpers import parseLinkDestination, parseLinkTitle
from markdown_it.rules_block import StateBlock


def definition_plugin(md: MarkdownIt) -> None:
    md.block.ruler.at("reference", reference)


def normalize_key(label: str) -> str:
    """Case- and whitespace-folded lookup key for a reference label."""
    return normalizeReference(label).lower()


def _skip_blank(string: str, pos: int, maximum: int) -> int:
    """Skip spaces, tabs and newlines."""
    while pos < maximum and (string[pos] == "\n" or isStrSpace(string[pos])):
        pos += 1
    return pos


def _skip_spaces(string: str, pos: int, maximum: int) -> int:
    while pos < maximum and isStrSpace(string[pos]):
        pos += 1
    return pos


def _block_end(state: StateBlock, startLine: int) -> int:
    """First line after the candidate block: a blank line, EOF or a terminator."""
    endLine = state.lineMax
    terminators = state.md.block.ruler.getRules("reference")
    nextLine = startLine + 1

    old_parent = state.parentType
    state.parentType = "reference"
    try:
        while nextLine < endLine and not state.isEmpty(nextLine):
            # would be a code block normally, but after a paragraph line
            # it's a lazy continuation whatever it holds
            if state.sCount[nextLine] - state.blkIndent > 3:
                nextLine += 1
                continue
            # quirk for blockquotes, this line was already checked by that rule
            if state.sCount[nextLine] < 0:
                nextLine += 1
                continue
            if any(rule(state, nextLine, endLine, True) for rule in terminators):
                break
            nextLine += 1
    finally:
        state.parentType = old_parent
    return nextLine


def reference(state: StateBlock, startLine: int, _endLine: int, silent: bool) -> bool:
    pos = state.bMarks[startLine] + state.tShift[startLine]
    maximum = state.eMarks[startLine]

    if state.sCount[startLine] - state.blkIndent >= 4:
        return False
    if state.src[pos : pos + 1] != "[":
        return False

    # quick reject of [link](url) at the start of a line
    pos += 1
    while pos < maximum:
        if state.src[pos] == "]" and state.src[pos - 1] != "\\":
            if pos + 1 == maximum:
                return False
            if state.src[pos + 1] != ":":
                return False
            break
        pos += 1

    nextLine = _block_end(state, startLine)
    string = state.getLines(startLine, nextLine, state.blkIndent, False).strip()
    maximum = len(string)

    labelEnd = None
    pos = 1
    while pos < maximum:
        ch = string[pos]
        if ch == "[":
            return False
        if ch == "]":
            labelEnd = pos
            break
        if ch == "\\":
            pos += 1
        pos += 1

    if labelEnd is None or string[labelEnd + 1 : labelEnd + 2] != ":":
        return False

    # [label]:   destination   'title'
    #         ^^^ skip optional whitespace here
    pos = _skip_blank(string, labelEnd + 2, maximum)

    # [label]:   destination   'title'
    #            ^^^^^^^^^^^ parse this
    res = parseLinkDestination(string, pos, maximum)
    if not res.ok:
        return False
    href = state.md.normalizeLink(res.str)
    if not state.md.validateLink(href):
        return False

    pos = res.pos
    # rollback point if the title turns out to be garbage
    destEndPos = pos

    # [label]:   destination   'title'
    #                       ^^^ skipping those spaces
    start = pos
    pos = _skip_blank(string, pos, maximum)

    # [label]:   destination   'title'
    #                          ^^^^^^^ parse this
    res = parseLinkTitle(string, pos, maximum)
    if pos < maximum and start != pos and res.ok:
        title = res.str
        pos = res.pos
    else:
        title = ""
        pos = destEndPos

    pos = _skip_spaces(string, pos, maximum)
    if pos < maximum and string[pos] != "\n" and title:
        # garbage after the title, but still valid if we drop the title
        title = ""
        pos = _skip_spaces(string, destEndPos, maximum)

    if pos < maximum and string[pos] != "\n":
        # garbage after the destination
        return False

    label = string[1:labelEnd]
    key = normalize_key(label)
    if not key:
        # CommonMark 0.20 disallows empty labels
        return False

    # a reference can not terminate anything, this check is for safety only
    if silent:
        return True

    lines = string.count("\n", 0, pos)
    state.line = startLine + lines + 1

    token = state.push("definition", "", 0)
    token.map = [startLine, state.line]
    token.meta = {"key": key, "label": label, "href": href, "title": title}

    references = state.env.setdefault("references", {})
    if key not in references:
        references[key] = {"title": title, "href": href, "map": token.map}
    return True
