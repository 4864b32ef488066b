"""
Storage layer for the Amplop ledger.

Structure:
- store.py: In-memory LedgerStore holding every collection
- base.py: Base SQLite repository with connection management and schema
- persistence.py: Snapshot format and load/save collaborators
"""

from .base import BaseRepository
from .persistence import (
    LedgerPersistence,
    LedgerSnapshot,
    MemoryPersistence,
    SQLitePersistence,
)
from .store import LedgerStore

__all__ = [
    "BaseRepository",
    "LedgerPersistence",
    "LedgerSnapshot",
    "LedgerStore",
    "MemoryPersistence",
    "SQLitePersistence",
]
