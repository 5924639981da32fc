"""
Append-only key-value ledger for the mortgage registry.

Components:
- entries: Immutable ledger entries (one per committed key write)
- store: StateStore protocol plus in-memory and JSON Lines implementations
- transaction: Per-invocation write buffering with all-or-nothing commit

Design principles:
- Append-only: entries are never rewritten
- Projected: current state is the fold of all entries
- Atomic per invocation: a failed call commits nothing
"""

from .entries import LedgerEntry, fold_entries
from .store import FileStateStore, MemoryStateStore, StateStore, VersionedStateStore
from .transaction import Transaction

__all__ = [
    "LedgerEntry",
    "fold_entries",
    "FileStateStore",
    "MemoryStateStore",
    "StateStore",
    "VersionedStateStore",
    "Transaction",
]
