"""SQLite-backed profile storage.

Design notes:
- One database file per profile, one row per key
- WAL mode so several processes on the same profile can read while one writes
- Writes by other connections are detected with PRAGMA data_version, which
  only changes when a *different* connection commits; poll() compares the
  watched keys against the last values this connection saw
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import StorageError
from ..events import Subscription
from .base import ChangeListener, KeyedEmitter, StorageChange, sanitize_exception

_logger = logging.getLogger(__name__)


@dataclass
class SQLiteBackend:
    """Durable key/value backend for one profile."""

    path: Path
    timeout: float = field(default=5.0)

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self._lock = threading.RLock()
        self._listeners = KeyedEmitter()
        self._seen: dict[str, str | None] = {}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._conn: sqlite3.Connection | None = sqlite3.connect(
                self.path, timeout=self.timeout, check_same_thread=False
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=FULL")
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            self._conn.commit()
            self._data_version = self._read_data_version()
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(sanitize_exception(exc)) from exc

    def get(self, key: str) -> str | None:
        with self._lock:
            try:
                rows = self._connection().execute(
                    "SELECT value FROM kv WHERE key = ?", (key,)
                ).fetchall()
            except sqlite3.Error as exc:
                raise StorageError(sanitize_exception(exc)) from exc
        return rows[0][0] if rows else None

    def set(
        self, key: str, value: str, *, origin: object | None = None, notify: bool = True
    ) -> StorageChange:
        with self._lock:
            conn = self._connection()
            try:
                conn.execute(
                    """
                    INSERT INTO kv (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value
                    """,
                    (key, value),
                )
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise StorageError(sanitize_exception(exc)) from exc
            if key in self._seen:
                self._seen[key] = value
        change = StorageChange(key=key, origin=origin)
        if notify:
            self.notify(change)
        return change

    def notify(self, change: StorageChange) -> None:
        self._listeners.fire(change)

    def on_did_change_value(self, key: str, listener: ChangeListener) -> Subscription:
        with self._lock:
            if key not in self._seen:
                self._seen[key] = self.get(key)
            return self._listeners.subscribe(key, listener)

    def poll(self) -> int:
        """Fire listeners for watched keys changed by other connections.

        Returns the number of keys whose value changed since the last poll.
        """
        changed: list[str] = []
        with self._lock:
            version = self._read_data_version()
            if version == self._data_version:
                return 0
            self._data_version = version
            for key in self._listeners.watched_keys():
                value = self.get(key)
                if value != self._seen.get(key):
                    self._seen[key] = value
                    changed.append(key)
        for key in changed:
            _logger.debug("external change detected for %s", key)
            self._listeners.fire(StorageChange(key=key, external=True))
        return len(changed)

    def close(self) -> None:
        with self._lock:
            conn, self._conn = self._conn, None
            self._listeners.clear()
            self._seen.clear()
        if conn is not None:
            conn.close()

    def __enter__(self) -> "SQLiteBackend":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("backend is closed")
        return self._conn

    def _read_data_version(self) -> int:
        try:
            rows = self._connection().execute("PRAGMA data_version").fetchall()
            return int(rows[0][0])
        except sqlite3.Error as exc:
            raise StorageError(sanitize_exception(exc)) from exc
