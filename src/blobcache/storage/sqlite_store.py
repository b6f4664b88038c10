"""SQLite backing store.

Stores each storage key as one row of a ``kv`` table. Uses WAL mode and
auto-commit, so a ``put`` is durable when it returns.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path

from blobcache.shared.constants import SQLiteStore
from blobcache.shared.errors import (
    BackingStoreError,
    ErrorCode,
    ErrorContext,
    create_store_error,
)
from blobcache.shared.logging import log_operation_error, log_operation_success

logger = logging.getLogger(__name__)

_MEMORY_PATH = ":memory:"


class SQLiteBackingStore:
    """Key-value table in a SQLite database file.

    Attributes:
        db_path: Path to SQLite database file, or ":memory:"
        conn: SQLite database connection

    Example:
        >>> store = SQLiteBackingStore(Path("cache.db"))
        >>> store.put("key_cache", '{"a":1}')
        True
        >>> store.close()
    """

    def __init__(self, db_path: Path | str) -> None:
        """Open (and create if needed) the database.

        Args:
            db_path: Path to SQLite database file

        Raises:
            BackingStoreError: If the database cannot be opened
        """
        if str(db_path) == _MEMORY_PATH:
            self.db_path: Path | None = None
            self._identity = f"sqlite:{_MEMORY_PATH}{id(self)}"
        else:
            self.db_path = Path(db_path).expanduser().resolve()
            self._identity = f"sqlite:{self.db_path}"
        self._lock = threading.Lock()
        self.conn: sqlite3.Connection | None = None
        self._initialize_db()

    def _initialize_db(self) -> None:
        context = ErrorContext(
            operation="initialize_db",
            file_path=str(self.db_path) if self.db_path else _MEMORY_PATH,
        )
        try:
            if self.db_path is not None:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                target = str(self.db_path)
            else:
                target = _MEMORY_PATH

            self.conn = sqlite3.connect(
                target,
                check_same_thread=False,
                isolation_level=None,  # Auto-commit mode
            )
            if self.db_path is not None:
                self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=FULL")
            self.conn.execute(
                f"CREATE TABLE IF NOT EXISTS {SQLiteStore.TABLE} "
                "(key TEXT PRIMARY KEY, value TEXT NOT NULL)"
            )
            log_operation_success(
                logger=logger,
                operation="initialize_db",
                duration_ms=0,
                context=context,
            )
        except (sqlite3.Error, OSError) as e:
            error = create_store_error(
                f"Failed to open SQLite store: {e!s}",
                code=ErrorCode.STORE_READ_FAILED,
                file_path=context.file_path,
                operation="initialize_db",
                original_error=e,
            )
            log_operation_error(logger, error)
            raise error from e

    @staticmethod
    def identity_for(db_path: Path | str) -> str | None:
        """Identity of the database at ``db_path``, without connecting.

        None for ":memory:", which names a new database on every open.
        """
        if str(db_path) == _MEMORY_PATH:
            return None
        return f"sqlite:{Path(db_path).expanduser().resolve()}"

    @property
    def identity(self) -> str:
        return self._identity

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            error_msg = "SQLite store is closed"
            raise sqlite3.ProgrammingError(error_msg)
        return self.conn

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
            file_path=str(self.db_path) if self.db_path else _MEMORY_PATH,
            operation=operation,
            original_error=original_error,
        )
        log_operation_error(logger, error)
        return error

    def get(self, storage_key: str) -> str:
        try:
            with self._lock:
                row = self._connection().execute(
                    f"SELECT value FROM {SQLiteStore.TABLE} WHERE key = ?",
                    (storage_key,),
                ).fetchone()
        except sqlite3.Error as e:
            raise self._fail(
                f"Failed to read '{storage_key}': {e!s}",
                ErrorCode.STORE_READ_FAILED,
                "store_get",
                e,
            ) from e
        return row[0] if row else ""

    def put(self, storage_key: str, value: str) -> bool:
        try:
            with self._lock:
                self._connection().execute(
                    f"INSERT INTO {SQLiteStore.TABLE} (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (storage_key, value),
                )
        except sqlite3.Error as e:
            raise self._fail(
                f"Failed to write '{storage_key}': {e!s}",
                ErrorCode.STORE_WRITE_FAILED,
                "store_put",
                e,
            ) from e
        return True

    def clear(self) -> None:
        try:
            with self._lock:
                self._connection().execute(f"DELETE FROM {SQLiteStore.TABLE}")
        except sqlite3.Error as e:
            raise self._fail(
                f"Failed to clear store: {e!s}",
                ErrorCode.STORE_CLEAR_FAILED,
                "store_clear",
                e,
            ) from e

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None

    def __repr__(self) -> str:
        return f"SQLiteBackingStore({self._identity!r})"
