"""Dependency Injection container for blobcache.

The container manages:
- Settings (Singleton)
- The backing store named by the cache settings (Singleton)
- The cache engine bound to that store (Singleton)

Tests and the CLI replace the settings with ``container.config.override``.
"""

from __future__ import annotations

from dependency_injector import containers, providers

from blobcache.config.loader import load_settings
from blobcache.services import BlobCache, get_lock_registry
from blobcache.storage import create_backing_store


class Container(containers.DeclarativeContainer):
    """Dependency Injection container for blobcache services.

    Example:
        >>> container = Container()
        >>> cache = container.cache()
        >>> cache.set("answer", 42)
    """

    # Configuration
    config = providers.Singleton(load_settings)

    lock_registry = providers.Object(get_lock_registry())

    backing_store = providers.Singleton(
        create_backing_store,
        identity=providers.Callable(
            lambda config: config.cache.store_path,
            config=config,
        ),
        backend=providers.Callable(
            lambda config: config.cache.backend,
            config=config,
        ),
    )

    cache = providers.Singleton(
        BlobCache.from_settings,
        settings=providers.Callable(
            lambda config: config.cache,
            config=config,
        ),
        store=backing_store,
        lock_registry=lock_registry,
    )
