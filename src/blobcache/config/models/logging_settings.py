"""Logging configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class LoggingSettings(BaseModel):
    """Logging configuration.

    This class manages log level, optional JSON log file and console
    rendering.
    """

    level: str = Field(default="WARNING", description="Logging level")
    file: str | None = Field(default=None, description="Optional JSON log file path")
    rich_console: bool = Field(
        default=True,
        description="Render console logs with rich instead of JSON lines",
    )

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            error_msg = f"Unknown log level: {value}"
            raise ValueError(error_msg)
        return normalized


__all__ = ["LoggingSettings"]
