"""Settings loader.

This module handles:
- Configuration file discovery and TOML loading
- Environment variable fallback when no file is found
- Logger setup from the logging section
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from blobcache.config.models.settings import Settings
from blobcache.shared.errors import create_config_error
from blobcache.shared.logging import setup_structured_logger

DEFAULT_CONFIG_PATHS: tuple[Path, ...] = (
    Path("blobcache.toml"),
    Path("config/blobcache.toml"),
    Path.home() / ".blobcache" / "config.toml",
)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from TOML configuration file or environment.

    Args:
        config_path: Optional path to TOML configuration file. If None, tries
            the default locations, then environment variables.

    Returns:
        Settings instance loaded from the first available source

    Raises:
        FileNotFoundError: If an explicit config_path does not exist
        ApplicationError: If the configuration does not validate
    """
    try:
        if config_path:
            return Settings.from_toml_file(config_path)

        for candidate in DEFAULT_CONFIG_PATHS:
            if candidate.exists():
                return Settings.from_toml_file(candidate)

        return Settings()
    except ValidationError as e:
        raise create_config_error(
            f"Invalid configuration: {e.error_count()} validation error(s)",
            config_key=str(config_path) if config_path else None,
            operation="load_settings",
            original_error=e,
        ) from e


def configure_logging(settings: Settings) -> logging.Logger:
    """Set up the package logger from the logging section."""
    return setup_structured_logger(
        level=settings.logging.level,
        log_file=settings.logging.file,
        use_rich_console=settings.logging.rich_console,
    )


__all__ = [
    "DEFAULT_CONFIG_PATHS",
    "configure_logging",
    "load_settings",
]
