"""Tests for LockRegistry."""

import threading

from blobcache.services import LockRegistry, get_lock_registry


class TestLockRegistry:
    """Test cases for per-identity locks."""

    def test_same_identity_same_lock(self):
        registry = LockRegistry()
        assert registry.get_lock("file:/a") is registry.get_lock("file:/a")

    def test_different_identities_different_locks(self):
        registry = LockRegistry()
        assert registry.get_lock("file:/a") is not registry.get_lock("file:/b")
        assert len(registry) == 2

    def test_lock_is_reentrant(self):
        lock = LockRegistry().get_lock("memory:x")
        with lock:
            assert lock.acquire(blocking=False)
            lock.release()

    def test_concurrent_first_use_creates_one_lock(self):
        registry = LockRegistry()
        seen = []
        barrier = threading.Barrier(8)

        def grab():
            barrier.wait()
            seen.append(registry.get_lock("shared"))

        threads = [threading.Thread(target=grab) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(lock) for lock in seen}) == 1

    def test_default_registry_is_process_wide(self):
        assert get_lock_registry() is get_lock_registry()
