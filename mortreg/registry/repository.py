"""Mortgage persistence over a key-value state store."""

from __future__ import annotations

from ..errors import CorruptRecord, NotFound
from ..ledger.store import StateStore
from ..models import INDEX_KEY, Mortgage
from .index import IndexService, NonAtomicIndex


class MortgageRepository:
    """
    Serializes mortgages to the store, one entry per mortgage id.

    The id index is delegated to an IndexService so the append strategy can
    be swapped without touching record handling.
    """

    def __init__(self, store: StateStore, index: IndexService | None = None):
        self.store = store
        self.index = index or NonAtomicIndex()

    def get(self, mortgage_id: str) -> Mortgage:
        """
        Load a mortgage.

        Raises:
            NotFound: No entry under mortgage_id
            CorruptRecord: The entry does not parse into a mortgage for this id
        """
        raw = self.store.get(mortgage_id)
        if raw is None:
            raise NotFound(f"Mortgage {mortgage_id!r} not found")
        mortgage = Mortgage.from_json(raw)
        if mortgage.mortgage_id != mortgage_id:
            raise CorruptRecord(
                f"Entry {mortgage_id!r} holds mortgage {mortgage.mortgage_id!r}"
            )
        return mortgage

    def exists(self, mortgage_id: str) -> bool:
        return self.store.get(mortgage_id) is not None

    def put(self, mortgage: Mortgage) -> None:
        self.store.put(mortgage.mortgage_id, mortgage.to_json())

    def list_ids(self) -> list[str]:
        return list(self.index.read(self.store).mortgage_ids)

    def append_id(self, mortgage_id: str) -> None:
        self.index.append(self.store, mortgage_id)

    def index_exists(self) -> bool:
        return self.store.get(INDEX_KEY) is not None

    def initialize_index(self) -> None:
        self.index.initialize(self.store)
