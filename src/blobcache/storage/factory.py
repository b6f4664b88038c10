"""Resolve a store identity into a backing store instance."""

from __future__ import annotations

from pathlib import Path

from blobcache.shared.constants import StoreBackend
from blobcache.shared.errors import (
    ApplicationError,
    ErrorCode,
    ErrorContext,
)
from blobcache.storage.base import BackingStore
from blobcache.storage.file_store import FileBackingStore
from blobcache.storage.memory import MemoryBackingStore
from blobcache.storage.sqlite_store import SQLiteBackingStore


def _resolve_backend(backend: StoreBackend | str) -> StoreBackend:
    try:
        return StoreBackend(backend)
    except ValueError as e:
        raise ApplicationError(
            ErrorCode.UNKNOWN_BACKEND,
            f"Unknown backing store backend: {backend!r}",
            ErrorContext(
                operation="create_backing_store",
                additional_data={"backend": str(backend)},
            ),
            e,
        ) from e


def store_identity(
    identity: BackingStore | Path | str,
    backend: StoreBackend | str = StoreBackend.FILE,
) -> str | None:
    """Return the identity ``create_backing_store`` would produce.

    Nothing is opened or created. Returns None when every open yields a
    new store (an in-memory SQLite database).

    Raises:
        ApplicationError: If the backend name is unknown
    """
    if isinstance(identity, BackingStore):
        return identity.identity

    kind = _resolve_backend(backend)
    if kind is StoreBackend.MEMORY:
        return MemoryBackingStore.identity_for(str(identity))
    if kind is StoreBackend.SQLITE:
        return SQLiteBackingStore.identity_for(identity)
    return FileBackingStore.identity_for(identity)


def create_backing_store(
    identity: BackingStore | Path | str,
    backend: StoreBackend | str = StoreBackend.FILE,
) -> BackingStore:
    """Return the backing store named by ``identity``.

    Args:
        identity: A ready store (returned unchanged), or a name/path
            interpreted by ``backend``
        backend: memory (shared named store), file (JSON file path) or
            sqlite (database path)

    Returns:
        A backing store instance

    Raises:
        ApplicationError: If the backend name is unknown
    """
    if isinstance(identity, BackingStore):
        return identity

    kind = _resolve_backend(backend)
    if kind is StoreBackend.MEMORY:
        return MemoryBackingStore.named(str(identity))
    if kind is StoreBackend.SQLITE:
        return SQLiteBackingStore(identity)
    return FileBackingStore(identity)


def close_store(store: BackingStore) -> None:
    """Release the store's resources if it holds any (sqlite connections)."""
    close = getattr(store, "close", None)
    if callable(close):
        close()
