"""Configuration loader for myst.toml."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .adapters.fs_storage import DEFAULT_INCLUDE
from .adapters.markdown_parser import DEFAULT_EXTENSIONS, KNOWN_EXTENSIONS
from .core.model import TokenKind
from .exceptions import ConfigError

CONFIG_FILENAME = "myst.toml"

DEFAULT_FOLDING_TOKENS = (
    TokenKind.PARAGRAPH_OPEN,
    TokenKind.BLOCKQUOTE_OPEN,
    TokenKind.BULLET_LIST_OPEN,
    TokenKind.ORDERED_LIST_OPEN,
    TokenKind.CODE_BLOCK,
    TokenKind.FENCE,
    TokenKind.HTML_BLOCK,
    TokenKind.TABLE_OPEN,
    TokenKind.DIV_OPEN,
)


@dataclass
class ProjectConfig:
    """Which files make up the project."""
    root: Path = Path(".")
    include: tuple[str, ...] = DEFAULT_INCLUDE


@dataclass
class ParsingConfig:
    """Optional grammar extensions."""
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS


@dataclass
class FoldingConfig:
    """Token kinds that produce folding ranges."""
    tokens: tuple[TokenKind, ...] = DEFAULT_FOLDING_TOKENS


@dataclass
class IndexConfig:
    """Complete mystindex configuration."""
    project: ProjectConfig = field(default_factory=ProjectConfig)
    parsing: ParsingConfig = field(default_factory=ParsingConfig)
    folding: FoldingConfig = field(default_factory=FoldingConfig)


def _string_list(data: dict[str, Any], key: str, section: str) -> tuple[str, ...] | None:
    if key not in data:
        return None
    value = data[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"[{section}] {key} must be a list of strings")
    return tuple(value)


def _token_kinds(names: tuple[str, ...]) -> tuple[TokenKind, ...]:
    kinds = []
    for name in names:
        try:
            kinds.append(TokenKind(name))
        except ValueError:
            raise ConfigError(f"[folding] unknown token kind: {name!r}") from None
    return tuple(kinds)


def validate_config(config: IndexConfig) -> None:
    """
    Check cross-field constraints.

    Raises:
        ConfigError: on unknown extensions or an empty include list.
    """
    unknown = sorted(set(config.parsing.extensions) - KNOWN_EXTENSIONS)
    if unknown:
        raise ConfigError(f"[parsing] unknown extension(s): {', '.join(unknown)}")
    if not config.project.include:
        raise ConfigError("[project] include must not be empty")


def load_config(config_path: Path | None = None, root: Path | None = None) -> IndexConfig:
    """
    Load configuration from myst.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/myst.toml
    3. root/myst.toml

    Args:
        config_path: Explicit path to config file
        root: Project root for fallback search

    Returns:
        IndexConfig with resolved settings

    Raises:
        ConfigError: if the file is not valid TOML or a value is invalid
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_FILENAME)
    if root:
        search_paths.append(root / CONFIG_FILENAME)

    for path in search_paths:
        if path.exists():
            try:
                with open(path, "rb") as f:
                    toml_data = tomllib.load(f)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"{path}: {exc}") from exc
            break

    # Parse project config
    project_data = toml_data.get("project", {})
    include = _string_list(project_data, "include", "project")
    project_config = ProjectConfig(
        root=Path(project_data.get("root", root or Path("."))),
        include=DEFAULT_INCLUDE if include is None else include,
    )

    # Parse parsing config
    parsing_data = toml_data.get("parsing", {})
    extensions = _string_list(parsing_data, "extensions", "parsing")
    parsing_config = ParsingConfig(
        extensions=DEFAULT_EXTENSIONS if extensions is None else extensions
    )

    # Parse folding config
    folding_data = toml_data.get("folding", {})
    folding_names = _string_list(folding_data, "tokens", "folding")
    folding_config = FoldingConfig(
        tokens=DEFAULT_FOLDING_TOKENS if folding_names is None else _token_kinds(folding_names)
    )

    config = IndexConfig(
        project=project_config,
        parsing=parsing_config,
        folding=folding_config,
    )
    validate_config(config)
    return config
