"""Storage backend protocol and shared helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from ..events import Emitter, Subscription


@dataclass(frozen=True)
class StorageChange:
    """A value under ``key`` was written.

    ``origin`` is whatever the writer passed to ``set`` (stores pass
    themselves) and ``external`` is True when the write came from another
    connection or process sharing the same storage.
    """

    key: str
    origin: object | None = None
    external: bool = False


ChangeListener = Callable[[StorageChange], None]


class StorageBackend(Protocol):
    """Durable key/value persistence scoped to one profile."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        ...

    def set(
        self, key: str, value: str, *, origin: object | None = None, notify: bool = True
    ) -> StorageChange:
        """Store ``value`` under ``key`` and return the change.

        With ``notify=False`` the caller delivers the change later via ``notify``,
        typically after releasing its own locks.
        """
        ...

    def notify(self, change: StorageChange) -> None:
        """Deliver ``change`` to the listeners of its key."""
        ...

    def on_did_change_value(self, key: str, listener: ChangeListener) -> Subscription:
        """Subscribe to writes of ``key``, including writes by other processes."""
        ...


class KeyedEmitter:
    """One change emitter per storage key, created on first subscription."""

    def __init__(self) -> None:
        self._emitters: dict[str, Emitter[[StorageChange]]] = {}

    def subscribe(self, key: str, listener: ChangeListener) -> Subscription:
        emitter = self._emitters.get(key)
        if emitter is None:
            emitter = Emitter(f"storage[{key}]")
            self._emitters[key] = emitter
        return emitter.subscribe(listener)

    def fire(self, change: StorageChange) -> None:
        emitter = self._emitters.get(change.key)
        if emitter is not None:
            emitter.fire(change)

    def watched_keys(self) -> list[str]:
        return [key for key, emitter in self._emitters.items() if emitter.listener_count]

    def clear(self) -> None:
        for emitter in self._emitters.values():
            emitter.clear()
        self._emitters.clear()


def sanitize_exception(exc: Exception) -> str:
    """Return a safe error message without filesystem paths."""
    if isinstance(exc, OSError):
        parts: list[str] = [exc.__class__.__name__]
        if exc.errno is not None:
            parts.append(f"errno={exc.errno}")
        if exc.strerror:
            parts.append(exc.strerror)
        return " ".join(parts).strip()
    return f"{exc.__class__.__name__}: {exc}"
