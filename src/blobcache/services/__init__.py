"""Cache engine and its locking."""

from .blob_cache import BlobCache
from .lock_registry import LockRegistry, get_lock_registry

__all__ = [
    "BlobCache",
    "LockRegistry",
    "get_lock_registry",
]
