"""
Pytest configuration and shared fixtures for blobcache tests.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from blobcache import BlobCache, CacheProfile, MemoryBackingStore
from blobcache.cli.context import clear_cli_context
from blobcache.services import LockRegistry


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep BLOBCACHE_* variables and config files of the host out of tests."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "BLOBCACHE_CACHE__PROFILE",
        "BLOBCACHE_CACHE__BACKEND",
        "BLOBCACHE_CACHE__STORE_PATH",
        "BLOBCACHE_CACHE__STORAGE_KEY",
        "BLOBCACHE_LOGGING__LEVEL",
        "BLOBCACHE_LOGGING__FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_cli_context()

    package_logger = logging.getLogger("blobcache")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def memory_store() -> MemoryBackingStore:
    """A fresh, unshared in-memory backing store."""
    return MemoryBackingStore()


@pytest.fixture
def lock_registry() -> LockRegistry:
    """A lock registry private to the test."""
    return LockRegistry()


@pytest.fixture
def cache(memory_store: MemoryBackingStore, lock_registry: LockRegistry) -> BlobCache:
    """A strict cache bound to a fresh memory store."""
    engine = BlobCache(lock_registry=lock_registry)
    engine.initialize(memory_store)
    return engine


@pytest.fixture
def lenient_cache(memory_store: MemoryBackingStore, lock_registry: LockRegistry) -> BlobCache:
    """A lenient cache bound to a fresh memory store."""
    engine = BlobCache(profile=CacheProfile.LENIENT, lock_registry=lock_registry)
    engine.initialize(memory_store)
    return engine
