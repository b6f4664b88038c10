"""Cache configuration model.

This module contains the configuration model for the cache engine:
accessor profile, storage key and backing store selection.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from blobcache.shared.constants import CacheDefaults, CacheProfile, StoreBackend


class CacheSettings(BaseModel):
    """Cache configuration.

    This class selects the accessor profile and where the cache
    document is persisted.
    """

    profile: CacheProfile = Field(
        default=CacheDefaults.PROFILE,
        description="Accessor profile (strict raises before initialize, lenient returns None)",
    )
    storage_key: str = Field(
        default=CacheDefaults.STORAGE_KEY,
        min_length=1,
        description="Backing store key holding the whole cache document",
    )
    backend: StoreBackend = Field(
        default=CacheDefaults.BACKEND,
        description="Backing store implementation (memory, file, sqlite)",
    )
    store_path: str = Field(
        default=CacheDefaults.STORE_PATH,
        min_length=1,
        description="Store identity: file/database path, or name for the memory backend",
    )


__all__ = ["CacheSettings"]
