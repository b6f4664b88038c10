"""blobcache configuration package."""

from __future__ import annotations

from .loader import configure_logging, load_settings
from .models import CacheSettings, LoggingSettings, Settings

__all__ = [
    "CacheSettings",
    "LoggingSettings",
    "Settings",
    "configure_logging",
    "load_settings",
]
