"""Backing stores the cache engine persists its document into."""

from .base import BackingStore
from .factory import close_store, create_backing_store, store_identity
from .file_store import FileBackingStore
from .memory import MemoryBackingStore
from .sqlite_store import SQLiteBackingStore

__all__ = [
    "BackingStore",
    "FileBackingStore",
    "MemoryBackingStore",
    "SQLiteBackingStore",
    "close_store",
    "create_backing_store",
    "store_identity",
]
