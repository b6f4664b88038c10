"""Per-store mutual exclusion.

Hands out one re-entrant lock per backing store identity, so every
engine bound to the same storage serializes its load/merge/persist
cycles against the others.
"""

from __future__ import annotations

import threading


class LockRegistry:
    """Thread-safe map from store identity to its lock.

    Example:
        >>> registry = LockRegistry()
        >>> registry.get_lock("file:/tmp/a.json") is registry.get_lock("file:/tmp/a.json")
        True
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def get_lock(self, identity: str) -> threading.RLock:
        """Return the lock for ``identity``, creating it on first use."""
        with self._guard:
            lock = self._locks.get(identity)
            if lock is None:
                lock = threading.RLock()
                self._locks[identity] = lock
            return lock

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


_default_registry = LockRegistry()


def get_lock_registry() -> LockRegistry:
    """Return the process-wide registry shared by engines by default."""
    return _default_registry
