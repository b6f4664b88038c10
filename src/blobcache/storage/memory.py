"""Process-local backing store."""

from __future__ import annotations

import itertools
import threading

_named_stores: dict[str, MemoryBackingStore] = {}
_named_lock = threading.Lock()
_anonymous_ids = itertools.count(1)


class MemoryBackingStore:
    """Dict-backed store living for the lifetime of the process.

    Anonymous instances are independent of each other. Use ``named()``
    to get the shared instance registered under a name.
    """

    def __init__(self, name: str | None = None) -> None:
        self._name = name or f"anonymous-{next(_anonymous_ids)}"
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    @classmethod
    def named(cls, name: str) -> MemoryBackingStore:
        """Return the process-wide store registered under ``name``."""
        with _named_lock:
            store = _named_stores.get(name)
            if store is None:
                store = cls(name)
                _named_stores[name] = store
            return store

    @staticmethod
    def identity_for(name: str) -> str:
        return f"memory:{name}"

    @property
    def identity(self) -> str:
        return self.identity_for(self._name)

    def get(self, storage_key: str) -> str:
        with self._lock:
            return self._data.get(storage_key, "")

    def put(self, storage_key: str, value: str) -> bool:
        with self._lock:
            self._data[storage_key] = value
        return True

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __repr__(self) -> str:
        return f"MemoryBackingStore({self._name!r})"
