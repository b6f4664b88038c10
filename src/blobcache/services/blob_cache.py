"""Cache engine.

``BlobCache`` keeps every entry in one JSON document stored under a
single backing store key. Each call is read-through and write-through:
reads load and decode the whole document, writes load it, merge, encode
and persist it back in one ``put``. A write therefore costs the size of
the whole document; that is the price of whole-document atomicity.

Every cycle runs under the lock of the bound store identity, so
concurrent writers in this process cannot lose each other's updates.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from blobcache.core import coercion
from blobcache.core.codec import CacheDocument, decode, encode
from blobcache.core.stored_value import StoredValue, check_text, to_stored
from blobcache.services.lock_registry import LockRegistry, get_lock_registry
from blobcache.shared.constants import (
    CacheDefaults,
    CacheProfile,
    Sentinels,
    StoreBackend,
)
from blobcache.shared.errors import (
    CacheFormatError,
    ErrorCode,
    ErrorContext,
    NotInitializedError,
    create_invalid_argument_error,
    create_store_error,
)
from blobcache.shared.logging import log_operation_error, log_operation_success
from blobcache.storage import BackingStore, close_store, create_backing_store, store_identity

if TYPE_CHECKING:
    from blobcache.config.models import CacheSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

_UNSET: Any = object()


class BlobCache:
    """Typed key-value cache persisted as a single JSON document.

    Behavior before ``initialize()`` and for absent keys depends on the
    profile:

    - STRICT: operations raise ``NotInitializedError``; typed getters
      return sentinels for absent keys (False, -1, -1.0, "").
    - LENIENT: operations log a warning and return None, False or do
      nothing; typed getters return None for absent keys.

    Every typed getter also accepts ``default=`` which overrides the
    profile's absence value. A stored JSON null counts as absent.

    Example:
        >>> cache = BlobCache()
        >>> cache.initialize(MemoryBackingStore())
        >>> cache.set("n", 9007199254740993)
        >>> cache.get_long("n")
        9007199254740993
    """

    def __init__(
        self,
        profile: CacheProfile | str = CacheDefaults.PROFILE,
        storage_key: str = CacheDefaults.STORAGE_KEY,
        backend: StoreBackend | str = CacheDefaults.BACKEND,
        lock_registry: LockRegistry | None = None,
    ) -> None:
        """Create an unbound engine.

        Args:
            profile: Accessor profile
            storage_key: Backing store key that holds the document
            backend: Backend used to resolve non-store identities
            lock_registry: Registry of per-store locks; defaults to the
                process-wide registry

        Raises:
            InvalidArgumentError: If storage_key is empty
        """
        if not storage_key:
            raise create_invalid_argument_error(
                "storage_key must not be empty",
                argument="storage_key",
                operation="create_cache",
            )
        self.profile = CacheProfile(profile)
        self.storage_key = storage_key
        self.backend = StoreBackend(backend)
        self._locks = lock_registry or get_lock_registry()
        self._store: BackingStore | None = None
        self._owns_store = False
        self._bind_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: CacheSettings,
        store: BackingStore | Path | str | None = None,
        lock_registry: LockRegistry | None = None,
    ) -> BlobCache:
        """Build an engine from configuration, initialized if ``store`` is given."""
        cache = cls(
            profile=settings.profile,
            storage_key=settings.storage_key,
            backend=settings.backend,
            lock_registry=lock_registry,
        )
        if store is not None:
            cache.initialize(store)
        return cache

    @property
    def is_strict(self) -> bool:
        return self.profile is CacheProfile.STRICT

    @property
    def is_initialized(self) -> bool:
        return self._store is not None

    @property
    def store(self) -> BackingStore | None:
        return self._store

    def initialize(self, identity: BackingStore | Path | str) -> None:
        """Bind the engine to a backing store.

        Binding to the identity already bound is a no-op and opens
        nothing; a different identity rebinds. A store the engine opened
        itself from a path or name is closed when it is replaced.

        Args:
            identity: A backing store, or a path/name resolved with the
                engine's backend
        """
        target = store_identity(identity, self.backend)
        with self._bind_lock:
            if self._store is not None and self._store.identity == target:
                logger.debug("Cache already bound to %s", target)
                return
            store = create_backing_store(identity, self.backend)
            previous, previous_owned = self._store, self._owns_store
            self._store = store
            self._owns_store = store is not identity
        if previous is not None and previous_owned:
            self._release(previous)
        logger.info("Cache bound to %s (profile=%s)", store.identity, self.profile.value)

    def close(self) -> None:
        """Unbind the engine and close its store.

        The engine is unbound afterwards; ``initialize()`` binds it again.
        """
        with self._bind_lock:
            store = self._store
            self._store = None
            self._owns_store = False
        if store is not None:
            self._release(store)

    def _release(self, store: BackingStore) -> None:
        with self._locks.get_lock(store.identity):
            close_store(store)
        logger.debug("Closed backing store %s", store.identity)

    # ------------------------------------------------------------------
    # Load / persist cycle
    # ------------------------------------------------------------------

    @contextmanager
    def _cycle(self, operation: str, key: str | None = None) -> Iterator[BackingStore | None]:
        store = self._store
        if store is None:
            if self.is_strict:
                error = NotInitializedError(
                    context=ErrorContext(
                        operation=operation,
                        additional_data={"key": key},
                    ),
                )
                log_operation_error(logger, error)
                raise error
            logger.warning("Cache used before initialize(); '%s' ignored", operation)
            yield None
            return

        start = time.perf_counter()
        with self._locks.get_lock(store.identity):
            yield store
        log_operation_success(
            logger=logger,
            operation=operation,
            duration_ms=(time.perf_counter() - start) * 1000,
            context={"key": key} if key is not None else None,
        )

    def _load(self, store: BackingStore, operation: str) -> CacheDocument:
        text = store.get(self.storage_key)
        try:
            return decode(text)
        except CacheFormatError as e:
            if not self.is_strict and e.code is ErrorCode.INVALID_JSON:
                logger.warning(
                    "Persisted cache text under '%s' is not valid JSON; treating it as empty",
                    self.storage_key,
                )
                return CacheDocument()
            log_operation_error(
                logger,
                e,
                operation=operation,
                additional_context={"storage_key": self.storage_key},
            )
            raise

    def _persist(self, store: BackingStore, document: CacheDocument, operation: str) -> None:
        text = encode(document)
        if not store.put(self.storage_key, text):
            error = create_store_error(
                f"Backing store did not commit '{self.storage_key}'",
                code=ErrorCode.STORE_WRITE_FAILED,
                operation=operation,
            )
            log_operation_error(logger, error)
            raise error

    def _read(self, operation: str, key: str | None, reader: Callable[[CacheDocument], R], fallback: R) -> R:
        with self._cycle(operation, key) as store:
            if store is None:
                return fallback
            return reader(self._load(store, operation))

    # ------------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------------

    def get_all_raw(self) -> str | None:
        """Return the persisted document text, "" if nothing is stored.

        A lenient engine returns None before ``initialize()``.
        """
        with self._cycle("get_all_raw") as store:
            if store is None:
                return None
            return store.get(self.storage_key) or ""

    def get_all(self) -> CacheDocument:
        """Return the decoded document."""
        return self._read("get_all", None, lambda document: document, CacheDocument())

    def keys(self) -> list[str]:
        """Return every cache key in sorted order."""
        return self._read("keys", None, list, [])

    def get(self, key: str) -> StoredValue:
        """Return the stored value for ``key``, or None if absent."""
        return self._read("get", key, lambda document: document.get(key), None)

    def contains_key(self, key: str) -> bool:
        """Return True if ``key`` is present; always False for blank keys."""
        if not key or not key.strip():
            return False
        return self._read("contains_key", key, lambda document: key in document, False)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains_key(key)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    def _check_key(key: Any, operation: str) -> None:
        if not isinstance(key, str):
            raise create_invalid_argument_error(
                f"Cache keys must be strings, got {type(key).__name__}",
                argument="key",
                operation=operation,
            )
        check_text(key, argument="key", operation=operation)

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, keeping every other entry."""
        self._check_key(key, "set")
        stored = to_stored(value)
        with self._cycle("set", key) as store:
            if store is None:
                return
            document = self._load(store, "set")
            document[key] = stored
            self._persist(store, document, "set")

    def set_all(self, entries: Mapping[str, Any] | None) -> None:
        """Merge every entry into the document and persist once.

        Raises:
            InvalidArgumentError: If entries is None or not a mapping
        """
        if entries is None or not isinstance(entries, Mapping):
            raise create_invalid_argument_error(
                "set_all() requires a mapping of entries",
                argument="entries",
                operation="set_all",
            )
        converted: dict[str, StoredValue] = {}
        for key, value in entries.items():
            self._check_key(key, "set_all")
            converted[key] = to_stored(value)

        with self._cycle("set_all") as store:
            if store is None:
                return
            document = self._load(store, "set_all")
            document.update(converted)
            self._persist(store, document, "set_all")

    def remove(self, key: str) -> bool:
        """Remove ``key``; persist only if it was present.

        Returns:
            True if an entry was removed
        """
        with self._cycle("remove", key) as store:
            if store is None:
                return False
            document = self._load(store, "remove")
            if key not in document:
                return False
            del document[key]
            self._persist(store, document, "remove")
            return True

    def clear(self) -> None:
        """Erase the whole backing store entry, not just the document."""
        with self._cycle("clear") as store:
            if store is None:
                return
            store.clear()

    # ------------------------------------------------------------------
    # Typed getters
    # ------------------------------------------------------------------

    def _absent(self, default: Any, sentinel: Any) -> Any:
        if default is not _UNSET:
            return default
        return sentinel if self.is_strict else None

    def _typed(
        self,
        operation: str,
        key: str,
        convert: Callable[[StoredValue], T],
        sentinel: Any,
        default: Any,
    ) -> Any:
        value = self.get(key)
        if value is None:
            return self._absent(default, sentinel)
        try:
            return convert(value)
        except CacheFormatError as e:
            log_operation_error(logger, e, operation=operation)
            raise

    def get_bool(self, key: str, default: Any = _UNSET) -> bool | None:
        """True when the value's text equals "true" ignoring case."""
        return self._typed("get_bool", key, coercion.to_bool, Sentinels.BOOL, default)

    def get_int(self, key: str, default: Any = _UNSET) -> int | None:
        """Value as a 32-bit signed integer."""
        return self._typed(
            "get_int", key, lambda v: coercion.to_int32(v, key), Sentinels.INT, default
        )

    def get_long(self, key: str, default: Any = _UNSET) -> int | None:
        """Value as a 64-bit signed integer."""
        return self._typed(
            "get_long", key, lambda v: coercion.to_int64(v, key), Sentinels.LONG, default
        )

    def get_float(self, key: str, default: Any = _UNSET) -> float | None:
        """Value rounded to single precision."""
        return self._typed(
            "get_float", key, lambda v: coercion.to_float32(v, key), Sentinels.FLOAT, default
        )

    def get_double(self, key: str, default: Any = _UNSET) -> float | None:
        """Value as a double precision float."""
        return self._typed(
            "get_double", key, lambda v: coercion.to_float64(v, key), Sentinels.DOUBLE, default
        )

    def get_string(self, key: str, default: Any = _UNSET) -> str | None:
        """Value's textual form; JSON strings come back without quotes."""
        return self._typed("get_string", key, coercion.to_string, Sentinels.STRING, default)

    def get_object(self, key: str, target: type[T], default: T | None = None) -> T | None:
        """Map the stored JSON onto ``target`` (model, dataclass, container...).

        Raises:
            TypeCoercionError: If the stored value does not validate
        """
        return self._typed(
            "get_object", key, lambda v: coercion.to_object(v, target), None, default
        )

    def __repr__(self) -> str:
        bound = self._store.identity if self._store else "unbound"
        return f"BlobCache({bound!r}, profile={self.profile.value!r})"
