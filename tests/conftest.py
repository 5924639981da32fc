"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from mortreg.chaincode import MortgageChaincode
from mortreg.identity import CallerIdentity, InvocationContext
from mortreg.ledger.store import FileStateStore, MemoryStateStore
from mortreg.ledger.transaction import Transaction
from mortreg.models import Role
from mortreg.registry.registry import MortgageRegistry
from mortreg.registry.repository import MortgageRepository


def _context(user: str, role: str) -> InvocationContext:
    return InvocationContext(attributes={"username": user, "role": role})


@pytest.fixture
def make_context():
    """Factory for invocation contexts carrying username/role certificate attributes."""
    return _context


@pytest.fixture
def store() -> MemoryStateStore:
    """An empty in-memory store."""
    return MemoryStateStore()


@pytest.fixture
def file_store(tmp_path: Path) -> FileStateStore:
    """An empty file-backed store."""
    return FileStateStore(tmp_path / ".mortreg" / "ledger.jsonl")


@pytest.fixture
def initialized_store(store: MemoryStateStore) -> MemoryStateStore:
    """A store holding an empty mortgage index."""
    with Transaction(store) as txn:
        MortgageRepository(txn).initialize_index()
    return store


@pytest.fixture
def registry(initialized_store: MemoryStateStore) -> MortgageRegistry:
    """Registry writing straight to the store (no transaction scoping)."""
    return MortgageRegistry(MortgageRepository(initialized_store))


@pytest.fixture
def chaincode(store: MemoryStateStore) -> MortgageChaincode:
    """Bootstrapped chaincode with two seeded identities."""
    cc = MortgageChaincode(store)
    cc.init(["P1", "p1-ecert", "S1", "s1-ecert"])
    return cc


@pytest.fixture
def primary() -> CallerIdentity:
    return CallerIdentity("P1", Role.PRIMARY_LENDER)


@pytest.fixture
def secondary() -> CallerIdentity:
    return CallerIdentity("S1", Role.SECONDARY_LENDER)


@pytest.fixture
def regulator() -> CallerIdentity:
    return CallerIdentity("R1", Role.REGULATOR)
