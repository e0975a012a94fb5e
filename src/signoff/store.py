"""Approval store: the durable list of approval items.

Design notes:
- The backend value is the single source of truth; nothing is cached here
- Each mutation reads the full list, transforms it, writes it back whole,
  under a per-store lock so concurrent adds cannot clobber each other; all
  notifications, including those to other stores on the backend, go out
  after the lock is released
- A missing or malformed stored value reads as an empty list and is
  overwritten by the next successful write
- Backend writes made by this store are not re-broadcast a second time;
  writes from anything else sharing the backend are
"""

from __future__ import annotations

import json
import logging
import secrets
import threading
import time
from typing import Callable

from pydantic import ValidationError

from .backends.base import StorageBackend, StorageChange
from .errors import InvalidArgument, InvalidTransition
from .events import Emitter, Subscription, SubscriptionGroup
from .types import (
    RESOLVED_STATUSES,
    ApprovalItem,
    ApprovalStatus,
    dump_items,
    parse_status,
)

_logger = logging.getLogger(__name__)

APPROVALS_STORAGE_KEY = "signoff.approvals.items"

# Regenerate an id this many times before giving up on a collision.
_MAX_ID_ATTEMPTS = 8


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _random_suffix() -> str:
    return secrets.token_hex(6)


def validate_title(title: str) -> str:
    if not isinstance(title, str) or not title.strip():
        raise InvalidArgument("title must be a non-empty string")
    return title


def validate_details(details: str | None) -> str | None:
    """Return ``details`` with blank text mapped to None."""
    if details is None:
        return None
    if not isinstance(details, str):
        raise InvalidArgument("details must be a string or None")
    return details if details.strip() else None


def parse_items(raw: str | None) -> list[ApprovalItem]:
    """Parse a stored blob. Anything but a well-formed array reads as empty."""
    if raw is None:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        _logger.warning("stored approvals are not valid JSON; treating as empty")
        return []
    if not isinstance(parsed, list):
        _logger.warning("stored approvals are not an array; treating as empty")
        return []
    try:
        return [ApprovalItem.model_validate(record) for record in parsed]
    except ValidationError as exc:
        _logger.warning(
            "stored approvals contain %d invalid record field(s); treating as empty",
            exc.error_count(),
        )
        return []


class ApprovalStore:
    """Tracks approval requests persisted under one backend key.

    Usage:
        with ApprovalStore(SQLiteBackend(settings.storage_path)) as store:
            item = store.add("Push to main")
            store.set_status(item.id, ApprovalStatus.APPROVED)
    """

    def __init__(
        self,
        backend: StorageBackend,
        *,
        key: str = APPROVALS_STORAGE_KEY,
        clock: Callable[[], int] = _now_ms,
        suffix_factory: Callable[[], str] = _random_suffix,
    ) -> None:
        self.backend = backend
        self.key = key
        self._clock = clock
        self._suffix_factory = suffix_factory
        self._lock = threading.RLock()
        self._on_did_change: Emitter[[]] = Emitter("approvals")
        self._subscriptions = SubscriptionGroup()
        self._subscriptions.add(backend.on_did_change_value(key, self._on_backend_change))

    def on_did_change(self, listener: Callable[[], None]) -> Subscription:
        """Subscribe to changes. Listeners get no payload and should call list()."""
        return self._on_did_change.subscribe(listener)

    def list(self) -> list[ApprovalItem]:
        """Return every item, newest first."""
        return parse_items(self.backend.get(self.key))

    def get(self, approval_id: str) -> ApprovalItem | None:
        for item in self.list():
            if item.id == approval_id:
                return item
        return None

    def add(self, title: str, details: str | None = None) -> ApprovalItem:
        """Record a new pending approval at the head of the list."""
        validate_title(title)
        details = validate_details(details)
        with self._lock:
            items = self.list()
            item = ApprovalItem(
                id=self._new_id({existing.id for existing in items}),
                title=title,
                details=details,
                created_at=self._clock(),
                status=ApprovalStatus.PENDING,
            )
            items.insert(0, item)
            change = self._write(items)
        _logger.debug("added approval %s", item.id)
        self._notify(change)
        return item

    def set_status(self, approval_id: str, status: ApprovalStatus | str) -> None:
        """Resolve a pending approval as approved or rejected.

        Unknown ids are ignored: the item may have been cleared elsewhere.
        Setting the status an item already has is a no-op.
        """
        target = parse_status(status)
        if target is ApprovalStatus.PENDING:
            raise InvalidArgument("status cannot be set back to pending")
        with self._lock:
            items = self.list()
            for index, item in enumerate(items):
                if item.id == approval_id:
                    break
            else:
                _logger.debug("set_status ignored unknown approval %s", approval_id)
                return
            if item.status is target:
                return
            if item.status in RESOLVED_STATUSES:
                raise InvalidTransition(
                    f"invalid approval status transition: {item.status.value} -> {target.value}"
                )
            items[index] = item.with_status(target)
            change = self._write(items)
        _logger.debug("approval %s marked %s", approval_id, target.value)
        self._notify(change)

    def clear(self) -> None:
        """Remove every item. Always notifies, even when already empty."""
        with self._lock:
            change = self._write([])
        _logger.debug("cleared approvals")
        self._notify(change)

    def close(self) -> None:
        self._subscriptions.close()
        self._on_did_change.clear()

    def __enter__(self) -> "ApprovalStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _write(self, items: list[ApprovalItem]) -> StorageChange:
        return self.backend.set(self.key, dump_items(items), origin=self, notify=False)

    def _notify(self, change: StorageChange) -> None:
        self.backend.notify(change)
        self._on_did_change.fire()

    def _new_id(self, taken: set[str]) -> str:
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = f"{self._clock()}-{self._suffix_factory()}"
            if candidate not in taken:
                return candidate
        raise RuntimeError("could not generate a unique approval id")

    def _on_backend_change(self, change: StorageChange) -> None:
        if change.origin is self:
            return
        self._on_did_change.fire()
