"""
Cache Constants

This module provides the constants shared by the cache engine, the
coercion layer and the backing stores.
"""

from enum import Enum


class CacheProfile(str, Enum):
    """Accessor behavior policy of a cache engine.

    STRICT raises on use before initialization and returns sentinel
    defaults for absent keys. LENIENT returns None silently.
    """

    STRICT = "strict"
    LENIENT = "lenient"


class StoreBackend(str, Enum):
    """Backing store implementations selectable by configuration."""

    MEMORY = "memory"
    FILE = "file"
    SQLITE = "sqlite"


class CacheDefaults:
    """Default configuration values."""

    STORAGE_KEY = "key_cache"
    STORE_PATH = "blobcache.json"
    PROFILE = CacheProfile.STRICT
    BACKEND = StoreBackend.FILE


class Sentinels:
    """Values returned by strict typed getters when a key is absent."""

    BOOL = False
    INT = -1
    LONG = -1
    FLOAT = -1.0
    DOUBLE = -1.0
    STRING = ""


class IntRange:
    """Signed integer bounds for int32/int64 coercion."""

    INT32_MIN = -(2**31)
    INT32_MAX = 2**31 - 1
    INT64_MIN = -(2**63)
    INT64_MAX = 2**63 - 1


class FileStore:
    """File backing store settings."""

    TEMP_SUFFIX = ".tmp"


class SQLiteStore:
    """SQLite backing store settings."""

    TABLE = "kv"
