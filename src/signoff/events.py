"""Synchronous change notification with explicit release.

Design notes:
- Listeners are invoked in registration order on the firing thread
- fire() delivers to a snapshot of the listeners registered at fire time
- A failing listener is logged and does not stop delivery to the rest
- Every registration returns a Subscription; closing it is the only way out
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, ParamSpec

_logger = logging.getLogger(__name__)

P = ParamSpec("P")


class Subscription:
    """Handle for one registration. close() is idempotent."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Callable[[], None] | None = release

    @property
    def closed(self) -> bool:
        return self._release is None

    def close(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class SubscriptionGroup:
    """Owns several subscriptions and releases them together."""

    def __init__(self) -> None:
        self._items: list[Subscription] = []
        self._closed = False

    def add(self, subscription: Subscription) -> Subscription:
        if self._closed:
            subscription.close()
        else:
            self._items.append(subscription)
        return subscription

    def close(self) -> None:
        self._closed = True
        items, self._items = self._items, []
        for subscription in reversed(items):
            subscription.close()

    def __enter__(self) -> "SubscriptionGroup":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Emitter(Generic[P]):
    """Multicast channel for a single kind of event."""

    def __init__(self, name: str = "event") -> None:
        self._name = name
        self._listeners: list[Callable[P, None]] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Callable[P, None]) -> Subscription:
        with self._lock:
            self._listeners.append(listener)

        def _release() -> None:
            with self._lock:
                try:
                    self._listeners.remove(listener)
                except ValueError:
                    pass

        return Subscription(_release)

    def fire(self, *args: P.args, **kwargs: P.kwargs) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(*args, **kwargs)
            except Exception:
                _logger.exception("%s listener %r failed", self._name, listener)

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)
