from typing import Any, Iterable

from markdown_it import MarkdownIt
from markdown_it.token import Token as MditToken
from mdit_py_plugins.front_matter import front_matter_plugin

from ..core.model import (
    DefinitionMeta,
    DivMeta,
    FrontMatterMeta,
    Span,
    Token,
    TokenKind,
    TokenMeta,
    freeze_mapping,
)
from ..core.ports import BlockParser
from ..exceptions import OptionsError
from .definitions import definition_plugin
from .myst_blocks import myst_blocks_plugin
from .myst_div import myst_div_plugin
from .yaml_codec import load_mapping

COLON_FENCE = "colon_fence"
KNOWN_EXTENSIONS = frozenset({COLON_FENCE})
DEFAULT_EXTENSIONS = (COLON_FENCE,)


def build_markdown(extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> MarkdownIt:
    """CommonMark block parser with the MyST rules; inline parsing is off."""
    md = MarkdownIt("commonmark")
    md.use(front_matter_plugin)
    md.use(myst_blocks_plugin)
    md.use(definition_plugin)
    if COLON_FENCE in set(extensions):
        md.use(myst_div_plugin)
    md.enable("table")
    md.disable(["inline", "text_join"], ignoreInvalid=True)
    return md


def _front_matter(content: str) -> FrontMatterMeta:
    try:
        return FrontMatterMeta(data=freeze_mapping(load_mapping(content)))
    except OptionsError as exc:
        return FrontMatterMeta(error=exc.message)


def _metadata(kind: TokenKind, meta: dict[str, Any], content: str) -> TokenMeta:
    if kind is TokenKind.DIV_OPEN:
        option_map = meta.get("option_map")
        return DivMeta(
            options=freeze_mapping(meta.get("options")),
            option_error=meta.get("option_error"),
            option_span=Span(*option_map) if option_map else None,
            closed=bool(meta.get("closed")),
        )
    if kind is TokenKind.DEFINITION:
        return DefinitionMeta(
            key=meta["key"],
            label=meta["label"],
            href=meta["href"],
            title=meta.get("title", ""),
        )
    if kind is TokenKind.FRONT_MATTER:
        return _front_matter(content)
    return None


def convert_token(token: MditToken) -> Token:
    kind = TokenKind(token.type)
    return Token(
        kind=kind,
        span=Span(token.map[0], token.map[1]) if token.map else None,
        content=token.content,
        markup=token.markup,
        info=token.info,
        nesting=token.nesting,
        level=token.level,
        metadata=_metadata(kind, token.meta or {}, token.content),
    )


class MystParser(BlockParser):
    def __init__(self, extensions: Iterable[str] = DEFAULT_EXTENSIONS):
        self.extensions = tuple(extensions)
        self.md = build_markdown(self.extensions)

    def parse_env(self, text: str) -> tuple[list[Token], dict[str, Any]]:
        """Tokens plus the markdown-it env (``env["references"]`` side table)."""
        env: dict[str, Any] = {"references": {}}
        tokens = [convert_token(t) for t in self.md.parse(text, env)]
        return tokens, env

    def parse(self, text: str) -> list[Token]:
        return self.parse_env(text)[0]


def parse_blocks(text: str, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> list[Token]:
    return MystParser(extensions).parse(text)
