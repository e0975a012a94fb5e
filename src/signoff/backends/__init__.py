"""Storage backends for the approval store."""

from .base import StorageBackend, StorageChange
from .memory import MemoryBackend
from .sqlite import SQLiteBackend

__all__ = [
    "StorageBackend",
    "StorageChange",
    "MemoryBackend",
    "SQLiteBackend",
]
