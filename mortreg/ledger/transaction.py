"""
Invocation-scoped write buffering.

A Transaction is the unit of work for one invocation: reads fall through to
the store (seeing the transaction's own pending writes first), writes are
buffered, and the whole write set is committed in one ``apply`` call. If the
invocation raises, nothing is committed, so a failed call leaves no trace
in the ledger.
"""

from __future__ import annotations

from types import TracebackType

from ..errors import StoreWriteError
from .entries import LedgerEntry
from .store import VersionedStateStore


class Transaction:
    """Buffered view over a VersionedStateStore; satisfies StateStore."""

    def __init__(self, store: VersionedStateStore, *, actor: str = "system", read_only: bool = False):
        self.store = store
        self.actor = actor
        self.read_only = read_only
        self._writes: dict[str, bytes] = {}
        self._expected: dict[str, int] = {}
        self._closed = False
        self.entries: list[LedgerEntry] = []

    def get(self, key: str) -> bytes | None:
        if key in self._writes:
            return self._writes[key]
        return self.store.get(key)

    def get_versioned(self, key: str) -> tuple[bytes | None, int]:
        """
        Return (value, version) as this transaction sees it.

        For a key already written in this transaction, the version is the one
        the write is conditioned on (or the store's current one).
        """
        if key in self._writes:
            return self._writes[key], self._expected.get(key, self.store.version(key))
        return self.store.get_versioned(key)

    def put(self, key: str, value: bytes, *, expected_version: int | None = None) -> None:
        """
        Buffer a whole-value write.

        With expected_version, the commit fails with WriteConflict unless the
        key is still at that version in the store. The first condition
        recorded for a key wins.
        """
        if self._closed:
            raise StoreWriteError("Transaction already closed")
        if self.read_only:
            raise StoreWriteError(f"Write to {key!r} in a read-only transaction")
        self._writes[key] = bytes(value)
        if expected_version is not None:
            self._expected.setdefault(key, expected_version)

    @property
    def pending_keys(self) -> list[str]:
        return list(self._writes)

    def commit(self) -> list[LedgerEntry]:
        if self._closed:
            raise StoreWriteError("Transaction already closed")
        self._closed = True
        if self.read_only:
            return []
        self.entries = self.store.apply(list(self._writes.items()), self._expected, actor=self.actor)
        return self.entries

    def discard(self) -> None:
        self._writes.clear()
        self._expected.clear()
        self._closed = True

    def __enter__(self) -> Transaction:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.discard()
            return
        if not self._closed:
            self.commit()
