"""Typed models for signoff."""

from __future__ import annotations

from enum import Enum
import json
from typing import Any, Iterable

from pydantic import BaseModel, Field, computed_field, field_validator

from .errors import InvalidArgument


class ApprovalStatus(str, Enum):
    """Lifecycle status of an approval item."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


RESOLVED_STATUSES: frozenset[ApprovalStatus] = frozenset(
    {ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}
)

# 9999-12-31T23:59:59.999Z, the last instant datetime can represent.
MAX_CREATED_AT_MS: int = 253_402_300_799_999


def parse_status(value: ApprovalStatus | str) -> ApprovalStatus:
    """Coerce a status value, raising InvalidArgument for anything unknown."""
    if isinstance(value, ApprovalStatus):
        return value
    try:
        return ApprovalStatus(value)
    except ValueError as exc:
        allowed = sorted(status.value for status in ApprovalStatus)
        raise InvalidArgument(f"status must be one of {allowed}") from exc


class ApprovalItem(BaseModel):
    """One tracked request awaiting a human decision.

    Instances are frozen. A status change produces a copy via
    ``with_status`` so that every other field stays as it was at creation.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    id: str
    title: str
    details: str | None = None
    created_at: int = Field(alias="createdAt", ge=0, le=MAX_CREATED_AT_MS)
    status: ApprovalStatus = ApprovalStatus.PENDING

    @field_validator("id", "title")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must be a non-empty string")
        return value

    @property
    def is_pending(self) -> bool:
        return self.status is ApprovalStatus.PENDING

    def with_status(self, status: ApprovalStatus) -> "ApprovalItem":
        return self.model_copy(update={"status": status})

    def to_record(self) -> dict[str, Any]:
        """Render the item as a persisted record (``details`` omitted when unset)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ApprovalCounts(BaseModel):
    """Tally of approval items by status."""

    model_config = {"frozen": True}

    pending: int = 0
    approved: int = 0
    rejected: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return self.pending + self.approved + self.rejected


def dump_items(items: Iterable[ApprovalItem]) -> str:
    """Serialize items as the compact JSON array stored under one key."""
    records = [item.to_record() for item in items]
    return json.dumps(records, ensure_ascii=False, separators=(",", ":"))
