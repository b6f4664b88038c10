"""Backing store protocol.

A backing store is durable string-keyed storage. The cache keeps its
whole document as one string under a single storage key.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class BackingStore(Protocol):
    """Protocol for the storage a cache engine persists into.

    Example:
        >>> store: BackingStore = MemoryBackingStore()
        >>> store.put("key_cache", '{"a":1}')
        True
        >>> store.get("key_cache")
        '{"a":1}'
    """

    @property
    def identity(self) -> str:
        """Stable name of the underlying storage.

        Two store objects with the same identity address the same data
        and share one engine lock.
        """

    def get(self, storage_key: str) -> str:
        """Return the text stored under ``storage_key``, or "" if absent."""

    def put(self, storage_key: str, value: str) -> bool:
        """Durably store ``value``; return True once committed."""

    def clear(self) -> None:
        """Erase every entry of this store."""
