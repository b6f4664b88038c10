"""
blobcache - Typed key-value cache persisted as one JSON document

Every entry lives in a single JSON object stored under one key of a
backing store (JSON file, SQLite database or process memory). Reads and
writes load, merge and persist the whole document, and numbers keep
their exact textual form.
"""

__version__ = "0.1.0"

from .core import CacheDocument, JsonNumber
from .services import BlobCache
from .shared.constants import CacheProfile, StoreBackend
from .shared.errors import (
    BackingStoreError,
    BlobCacheError,
    CacheFormatError,
    InvalidArgumentError,
    NotInitializedError,
    TypeCoercionError,
)
from .storage import (
    BackingStore,
    FileBackingStore,
    MemoryBackingStore,
    SQLiteBackingStore,
    create_backing_store,
)

__all__ = [
    "BackingStore",
    "BackingStoreError",
    "BlobCache",
    "BlobCacheError",
    "CacheDocument",
    "CacheFormatError",
    "CacheProfile",
    "FileBackingStore",
    "InvalidArgumentError",
    "JsonNumber",
    "MemoryBackingStore",
    "NotInitializedError",
    "SQLiteBackingStore",
    "StoreBackend",
    "TypeCoercionError",
    "create_backing_store",
]
