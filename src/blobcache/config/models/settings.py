"""blobcache Settings Model.

Main Settings class that consolidates all configuration sections.
"""

from __future__ import annotations

from pathlib import Path

import toml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from blobcache.config.models.cache_settings import CacheSettings
from blobcache.config.models.logging_settings import LoggingSettings


class Settings(BaseSettings):
    """Unified configuration.

    Values come from keyword arguments (for example a parsed TOML file),
    then ``BLOBCACHE_*`` environment variables, then defaults. Nested
    fields use ``__``: ``BLOBCACHE_CACHE__PROFILE=lenient``.
    """

    model_config = SettingsConfigDict(
        env_prefix="BLOBCACHE_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_toml_file(cls, file_path: str | Path) -> Settings:
        """Load settings from a TOML file; missing fields fall back to env and defaults."""
        file_path = Path(file_path)
        if not file_path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        raw_config = toml.load(file_path)
        return cls(**raw_config)

    def to_toml_file(self, file_path: str | Path) -> None:
        """Save settings to TOML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(mode="json", exclude_none=True)

        with open(file_path, "w", encoding="utf-8") as f:
            toml.dump(config_dict, f)
