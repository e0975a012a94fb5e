"""signoff public API."""

from .backends import MemoryBackend, SQLiteBackend, StorageBackend, StorageChange
from .commands import ApprovalCommands, Prompter, RichPrompter
from .config import Settings
from .errors import (
    InvalidArgument,
    InvalidTransition,
    PromptError,
    SignoffError,
    StorageError,
    UnknownCommand,
)
from .events import Emitter, Subscription, SubscriptionGroup
from .store import APPROVALS_STORAGE_KEY, ApprovalStore
from .types import ApprovalCounts, ApprovalItem, ApprovalStatus
from .view import ApprovalView, counts, filtered

__all__ = (
    # Store
    "ApprovalStore",
    "APPROVALS_STORAGE_KEY",
    # Projection
    "ApprovalView",
    "counts",
    "filtered",
    # Types
    "ApprovalItem",
    "ApprovalStatus",
    "ApprovalCounts",
    # Backends
    "StorageBackend",
    "StorageChange",
    "MemoryBackend",
    "SQLiteBackend",
    # Events
    "Emitter",
    "Subscription",
    "SubscriptionGroup",
    # Commands
    "ApprovalCommands",
    "Prompter",
    "RichPrompter",
    # Config
    "Settings",
    # Errors
    "SignoffError",
    "InvalidArgument",
    "InvalidTransition",
    "StorageError",
    "PromptError",
    "UnknownCommand",
)
