"""
CLI Context Management Module

Holds the options parsed by the main callback in a pydantic model stored
in a ContextVar, so every command reads the same settings.
"""

from __future__ import annotations

import contextvars
from enum import Enum

from pydantic import BaseModel, Field

from blobcache.config.models import Settings


class LogLevel(str, Enum):
    """Log level enumeration for type safety."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CliContext(BaseModel):
    """
    CLI context model for managing global state.

    Attributes:
        settings: Effective settings after applying command-line overrides
        log_level: Logging level
        json_output: Whether to output in JSON format
    """

    settings: Settings = Field(
        default_factory=Settings,
        description="Effective settings",
    )

    log_level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Logging level",
    )

    json_output: bool = Field(
        default=False,
        description="Whether to output in JSON format",
    )

    def is_json_output_enabled(self) -> bool:
        """Check if JSON output is enabled."""
        return self.json_output


_current: contextvars.ContextVar[CliContext | None] = contextvars.ContextVar(
    "blobcache_cli_context",
    default=None,
)


def get_cli_context() -> CliContext:
    """Return the context stored by the main callback.

    Raises:
        RuntimeError: If no command callback has run yet
    """
    context = _current.get()
    if context is None:
        error_msg = "CLI context is not set; the main callback has not run"
        raise RuntimeError(error_msg)
    return context


def set_cli_context(context: CliContext) -> None:
    _current.set(context)


def clear_cli_context() -> None:
    _current.set(None)
