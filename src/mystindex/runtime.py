"""Runtime wiring helper for the CLI and watcher."""

from dataclasses import dataclass
from pathlib import Path

from .adapters.doc_cache import DocumentCache
from .adapters.fs_storage import FsStorage
from .adapters.markdown_parser import MystParser
from .adapters.target_index import ProjectTargetIndex
from .config import IndexConfig, load_config
from .core.workspace import Workspace


@dataclass
class Runtime:
    """Container for all wired components."""
    workspace: Workspace
    storage: FsStorage
    config: IndexConfig


def build_workspace(config: IndexConfig) -> Workspace:
    """A fresh session: parser for the configured extensions, empty caches."""
    return Workspace(
        parser=MystParser(config.parsing.extensions),
        documents=DocumentCache(),
        targets=ProjectTargetIndex(),
    )


def build_runtime(
    root: Path | None = None,
    config_path: Path | None = None,
) -> Runtime:
    """Build and wire all components for a project."""
    config = load_config(config_path=config_path, root=root)

    # CLI arg wins over config
    if root is None:
        root = config.project.root

    storage = FsStorage(root, include=config.project.include)
    return Runtime(
        workspace=build_workspace(config),
        storage=storage,
        config=config,
    )
