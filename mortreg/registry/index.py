"""
Index services for the mortgage id aggregate.

The index is one record at the reserved ``mortIDs`` key, rewritten whole on
every append. Two strategies are provided:

- NonAtomicIndex: read-modify-write with no version check. Two transactions
  that read the same index and both commit lose one of the appended ids
  (last writer wins on the aggregate). This is the historical behavior and
  the default.
- ConditionalIndex: the write is conditioned on the version that was read,
  so the second of two racing commits fails with WriteConflict and writes
  nothing. Callers resubmit; there is no internal retry.
"""

from __future__ import annotations

from typing import Protocol

from ..errors import NotFound
from ..ledger.store import StateStore
from ..ledger.transaction import Transaction
from ..models import INDEX_KEY, MortgageIndex

INDEX_STRATEGIES = ("non_atomic", "conditional")


def _decode(raw: bytes | None) -> MortgageIndex:
    if raw is None:
        raise NotFound(f"Unable to get {INDEX_KEY}: registry index not initialized")
    return MortgageIndex.from_json(raw)


class IndexService(Protocol):
    """Reads and appends the mortgage index through a store."""

    def read(self, store: StateStore) -> MortgageIndex:
        ...

    def append(self, store: StateStore, mortgage_id: str) -> MortgageIndex:
        ...

    def initialize(self, store: StateStore) -> None:
        ...


class NonAtomicIndex:
    """Plain read-modify-write of the index aggregate."""

    strategy = "non_atomic"

    def read(self, store: StateStore) -> MortgageIndex:
        return _decode(store.get(INDEX_KEY))

    def append(self, store: StateStore, mortgage_id: str) -> MortgageIndex:
        updated = self.read(store).appended(mortgage_id)
        store.put(INDEX_KEY, updated.to_json())
        return updated

    def initialize(self, store: StateStore) -> None:
        store.put(INDEX_KEY, MortgageIndex().to_json())


class ConditionalIndex:
    """Index writes conditioned on the version read in the same transaction."""

    strategy = "conditional"

    @staticmethod
    def _require_transaction(store: StateStore) -> Transaction:
        if not isinstance(store, Transaction):
            raise TypeError("ConditionalIndex writes require a Transaction")
        return store

    def read(self, store: StateStore) -> MortgageIndex:
        return _decode(store.get(INDEX_KEY))

    def append(self, store: StateStore, mortgage_id: str) -> MortgageIndex:
        txn = self._require_transaction(store)
        raw, version = txn.get_versioned(INDEX_KEY)
        updated = _decode(raw).appended(mortgage_id)
        txn.put(INDEX_KEY, updated.to_json(), expected_version=version)
        return updated

    def initialize(self, store: StateStore) -> None:
        txn = self._require_transaction(store)
        txn.put(INDEX_KEY, MortgageIndex().to_json(), expected_version=0)


def index_for_strategy(strategy: str) -> IndexService:
    if strategy == "non_atomic":
        return NonAtomicIndex()
    if strategy == "conditional":
        return ConditionalIndex()
    raise ValueError(f"Unknown index strategy {strategy!r}; expected one of {', '.join(INDEX_STRATEGIES)}")
