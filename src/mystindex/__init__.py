"""Incremental MyST Markdown analysis engine for editor tooling."""

__version__ = "0.1.0"
