"""File-based backing store.

One JSON file holds every storage key of the store, the way a named
preference file does. Writes go through a temporary file that is
fsynced and then atomically renamed over the original.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

import orjson

from blobcache.shared.constants import FileStore
from blobcache.shared.errors import BackingStoreError, ErrorCode, create_store_error
from blobcache.shared.logging import log_operation_error

logger = logging.getLogger(__name__)


class FileBackingStore:
    """Backing store persisted to a single JSON file.

    Args:
        path: Location of the store file. Parent directories are created
            on first write.

    Example:
        >>> store = FileBackingStore(Path("prefs.json"))
        >>> store.put("key_cache", "{}")
        True
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser().resolve()
        self._lock = threading.Lock()

    @staticmethod
    def identity_for(path: Path | str) -> str:
        """Identity of the store at ``path``, without opening it."""
        return f"file:{Path(path).expanduser().resolve()}"

    @property
    def identity(self) -> str:
        return self.identity_for(self.path)

    def _fail(
        self,
        message: str,
        code: ErrorCode,
        operation: str,
        original_error: Exception,
    ) -> BackingStoreError:
        error = create_store_error(
            message,
            code=code,
            file_path=str(self.path),
            operation=operation,
            original_error=original_error,
        )
        log_operation_error(logger, error)
        return error

    def _read_entries(self, operation: str) -> dict[str, str]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise self._fail(
                f"Failed to read store file: {e}",
                ErrorCode.STORE_READ_FAILED,
                operation,
                e,
            ) from e

        if not raw.strip():
            return {}
        try:
            entries = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise self._fail(
                f"Store file is not valid JSON: {e}",
                ErrorCode.STORE_READ_FAILED,
                operation,
                e,
            ) from e
        if not isinstance(entries, dict) or not all(
            isinstance(value, str) for value in entries.values()
        ):
            error = create_store_error(
                "Store file must map storage keys to strings",
                code=ErrorCode.STORE_READ_FAILED,
                file_path=str(self.path),
                operation=operation,
            )
            log_operation_error(logger, error)
            raise error
        return entries

    def _atomic_write(self, content: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + FileStore.TEMP_SUFFIX)
        with open(tmp, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self.path)

    def get(self, storage_key: str) -> str:
        with self._lock:
            return self._read_entries("store_get").get(storage_key, "")

    def put(self, storage_key: str, value: str) -> bool:
        with self._lock:
            entries = self._read_entries("store_put")
            entries[storage_key] = value
            try:
                self._atomic_write(orjson.dumps(entries, option=orjson.OPT_SORT_KEYS))
            except OSError as e:
                raise self._fail(
                    f"Failed to write store file: {e}",
                    ErrorCode.STORE_WRITE_FAILED,
                    "store_put",
                    e,
                ) from e
        logger.debug("Wrote %d bytes under '%s' to %s", len(value), storage_key, self.path)
        return True

    def clear(self) -> None:
        with self._lock:
            try:
                self.path.unlink(missing_ok=True)
            except OSError as e:
                raise self._fail(
                    f"Failed to delete store file: {e}",
                    ErrorCode.STORE_CLEAR_FAILED,
                    "store_clear",
                    e,
                ) from e
        logger.debug("Cleared store file %s", self.path)

    def __repr__(self) -> str:
        return f"FileBackingStore({str(self.path)!r})"
