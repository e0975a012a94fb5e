"""Presentation projection over an approval store snapshot."""

from __future__ import annotations

from typing import Callable, Sequence

from .events import Emitter, Subscription, SubscriptionGroup
from .store import ApprovalStore
from .types import ApprovalCounts, ApprovalItem, ApprovalStatus


def counts(items: Sequence[ApprovalItem]) -> ApprovalCounts:
    tally = {status: 0 for status in ApprovalStatus}
    for item in items:
        tally[item.status] += 1
    return ApprovalCounts(
        pending=tally[ApprovalStatus.PENDING],
        approved=tally[ApprovalStatus.APPROVED],
        rejected=tally[ApprovalStatus.REJECTED],
    )


def filtered(items: Sequence[ApprovalItem], only_pending: bool) -> list[ApprovalItem]:
    """Return the items to display, in their original order. Never mutates ``items``."""
    if only_pending:
        return [item for item in items if item.status is ApprovalStatus.PENDING]
    return list(items)


def status_label(status: ApprovalStatus) -> str:
    return status.value.upper()


class ApprovalView:
    """Filtered rows and counts kept in step with an ApprovalStore.

    The view re-reads the store on every change notification and then fires
    its own ``on_did_change`` so renderers rebuild from ``rows``.
    Selection is the renderer's business; ``item_at`` resolves an index in
    the current rows.
    """

    def __init__(self, store: ApprovalStore, *, only_pending: bool = True) -> None:
        self.store = store
        self._only_pending = only_pending
        self._items: list[ApprovalItem] = []
        self._rows: list[ApprovalItem] = []
        self._on_did_change: Emitter[[]] = Emitter("approvals view")
        self._subscriptions = SubscriptionGroup()
        self._subscriptions.add(store.on_did_change(self.refresh))
        self._recompute()

    @property
    def only_pending(self) -> bool:
        return self._only_pending

    @property
    def rows(self) -> list[ApprovalItem]:
        return list(self._rows)

    @property
    def counts(self) -> ApprovalCounts:
        return counts(self._items)

    def on_did_change(self, listener: Callable[[], None]) -> Subscription:
        return self._on_did_change.subscribe(listener)

    def item_at(self, index: int) -> ApprovalItem | None:
        if 0 <= index < len(self._rows):
            return self._rows[index]
        return None

    def set_only_pending(self, value: bool) -> None:
        if value == self._only_pending:
            return
        self._only_pending = value
        self._rows = filtered(self._items, value)
        self._on_did_change.fire()

    def toggle_only_pending(self) -> bool:
        self.set_only_pending(not self._only_pending)
        return self._only_pending

    def refresh(self) -> None:
        self._recompute()
        self._on_did_change.fire()

    def close(self) -> None:
        self._subscriptions.close()
        self._on_did_change.clear()

    def __enter__(self) -> "ApprovalView":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _recompute(self) -> None:
        self._items = self.store.list()
        self._rows = filtered(self._items, self._only_pending)
