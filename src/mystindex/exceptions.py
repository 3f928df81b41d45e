"""Package-specific exception types."""

from __future__ import annotations


class MystIndexError(Exception):
    """Base class for all mystindex errors."""


class ConfigError(MystIndexError, ValueError):
    """Raised when a configuration file or value is invalid."""


class OptionsError(MystIndexError, ValueError):
    """Raised when an embedded YAML block cannot be decoded into a mapping.

    Args:
        message: Human readable description of the decode failure.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
