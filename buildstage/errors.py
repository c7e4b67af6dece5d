"""Exception types raised by the staging pipeline."""

from __future__ import annotations

__all__ = ["CompilationError", "ConfigError", "RedirectionError", "StageError"]


class StageError(RuntimeError):
    """Raised when staging cannot proceed."""


class ConfigError(StageError):
    """Raised when the project configuration is malformed."""


class RedirectionError(StageError):
    """Raised when the active root is restored without a prior redirection."""


class CompilationError(StageError):
    """Raised when the external compiler command fails."""
