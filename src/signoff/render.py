"""Terminal rendering of the approvals view."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from rich.console import Console, RenderableType
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .commands import APPROVE_COMMAND, REJECT_COMMAND
from .events import Subscription
from .types import ApprovalCounts, ApprovalItem, ApprovalStatus
from .view import ApprovalView, status_label

EMPTY_MESSAGE = "No approvals yet."

_STATUS_STYLES = {
    ApprovalStatus.PENDING: "yellow",
    ApprovalStatus.APPROVED: "green",
    ApprovalStatus.REJECTED: "red",
}


def _format_created_at(created_at: int) -> str:
    try:
        moment = datetime.fromtimestamp(created_at / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return str(created_at)
    return moment.strftime("%Y-%m-%d %H:%M:%SZ")


def _actions(item: ApprovalItem) -> str:
    if not item.is_pending:
        return ""
    return f"{APPROVE_COMMAND} {item.id}\n{REJECT_COMMAND} {item.id}"


def build_table(rows: Sequence[ApprovalItem], counts: ApprovalCounts | None = None) -> RenderableType:
    """Build a table with one row per item; pending rows list their actions."""
    if not rows:
        return Text(EMPTY_MESSAGE, style="dim")
    table = Table(title="Approvals", show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Created")
    table.add_column("Actions", style="dim")
    for index, item in enumerate(rows):
        title = escape(item.title)
        if item.details:
            title += f"\n[dim]{escape(item.details)}[/dim]"
        status = item.status
        table.add_row(
            str(index),
            title,
            f"[{_STATUS_STYLES[status]}]{status_label(status)}[/]",
            _format_created_at(item.created_at),
            escape(_actions(item)),
        )
    if counts is not None:
        table.caption = (
            f"{counts.pending} pending, {counts.approved} approved, "
            f"{counts.rejected} rejected ({counts.total} total)"
        )
    return table


class ApprovalTableRenderer:
    """Re-renders a view to the console every time it changes."""

    def __init__(self, view: ApprovalView, console: Console | None = None) -> None:
        self.view = view
        self.console = console or Console()
        self._subscription: Subscription | None = None

    def render(self) -> None:
        self.console.print(build_table(self.view.rows, self.view.counts))

    def attach(self) -> Subscription:
        if self._subscription is None or self._subscription.closed:
            self._subscription = self.view.on_did_change(self.render)
        return self._subscription

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
