"""
blobcache Constants Module

Centralized constants for blobcache. All magic values used by the
engine, stores and CLI are defined here.
"""

from .cache import (
    CacheDefaults,
    CacheProfile,
    FileStore,
    IntRange,
    Sentinels,
    SQLiteStore,
    StoreBackend,
)
from .cli import CLICommands, CLIDefaults, CLIHelp, ValueTypes

__all__ = [
    "CLICommands",
    "CLIDefaults",
    "CLIHelp",
    "CacheDefaults",
    "CacheProfile",
    "FileStore",
    "IntRange",
    "SQLiteStore",
    "Sentinels",
    "StoreBackend",
    "ValueTypes",
]
