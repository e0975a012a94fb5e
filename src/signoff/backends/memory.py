"""In-process storage backend."""

from __future__ import annotations

import threading

from ..events import Subscription
from .base import ChangeListener, KeyedEmitter, StorageChange


class MemoryBackend:
    """Dict-backed backend shared by every store constructed on it.

    Nothing survives the process. Useful for tests and for hosts that only
    need several views of one list within a single process.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()
        self._listeners = KeyedEmitter()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._values.get(key)

    def set(
        self, key: str, value: str, *, origin: object | None = None, notify: bool = True
    ) -> StorageChange:
        with self._lock:
            self._values[key] = value
        change = StorageChange(key=key, origin=origin)
        if notify:
            self.notify(change)
        return change

    def notify(self, change: StorageChange) -> None:
        self._listeners.fire(change)

    def on_did_change_value(self, key: str, listener: ChangeListener) -> Subscription:
        return self._listeners.subscribe(key, listener)
