"""
Tests for the mortgage lifecycle state machine.

Covers the role rules (who may create, transfer, read), uniqueness,
owner-only visibility in listings, and the abort-vs-skip distinction when
listing.
"""

from __future__ import annotations

import itertools

import pytest

from mortreg.errors import (
    AlreadyExists,
    CorruptRecord,
    InvalidArguments,
    NotFound,
    PermissionDenied,
    RetrievalFailure,
)
from mortreg.identity import CallerIdentity
from mortreg.ledger.store import MemoryStateStore
from mortreg.models import INDEX_KEY, Mortgage, MortgageIndex, Role
from mortreg.registry.registry import PING_RESPONSE, MortgageRegistry
from mortreg.registry.repository import MortgageRepository


# -----------------------------------------------------------------------------
# Create
# -----------------------------------------------------------------------------


def test_create_persists_record_owned_by_caller(registry: MortgageRegistry, primary: CallerIdentity):
    created = registry.create(primary, "M1")

    stored = registry.repository.get("M1")
    assert stored == created
    assert stored.owner == "P1"
    assert stored.lendee == "UNDEFINED"
    assert registry.repository.list_ids() == ["M1"]


def test_create_twice_fails_with_already_exists(registry: MortgageRegistry, primary: CallerIdentity):
    registry.create(primary, "M1")
    with pytest.raises(AlreadyExists):
        registry.create(primary, "M1")
    assert registry.repository.list_ids() == ["M1"]


@pytest.mark.parametrize("role", [Role.SECONDARY_LENDER, Role.REGULATOR])
def test_only_primary_lender_can_create(registry: MortgageRegistry, role: Role):
    caller = CallerIdentity("X", role)
    with pytest.raises(PermissionDenied):
        registry.create(caller, "M1")
    assert not registry.repository.exists("M1")
    assert registry.repository.list_ids() == []


def test_permission_checked_before_existence(registry: MortgageRegistry, primary: CallerIdentity):
    registry.create(primary, "M1")
    with pytest.raises(PermissionDenied):
        registry.create(CallerIdentity("S1", Role.SECONDARY_LENDER), "M1")


def test_create_rejects_empty_id(registry: MortgageRegistry, primary: CallerIdentity):
    with pytest.raises(InvalidArguments):
        registry.create(primary, "")


def test_create_without_index_writes_nothing(store: MemoryStateStore, primary: CallerIdentity):
    registry = MortgageRegistry(MortgageRepository(store))
    with pytest.raises(NotFound):
        registry.create(primary, "M1")
    assert store.get("M1") is None


def test_create_preserves_insertion_order(registry: MortgageRegistry, primary: CallerIdentity):
    for mortgage_id in ["M3", "M1", "M2"]:
        registry.create(primary, mortgage_id)
    assert registry.repository.list_ids() == ["M3", "M1", "M2"]


# -----------------------------------------------------------------------------
# Transfer
# -----------------------------------------------------------------------------


def test_transfer_moves_ownership_to_secondary_lender(registry: MortgageRegistry, primary: CallerIdentity):
    mortgage = registry.create(primary, "M1")
    registry.transfer(mortgage, primary, "S1", Role.SECONDARY_LENDER)
    assert registry.repository.get("M1").owner == "S1"


@pytest.mark.parametrize(
    ("is_owner", "caller_role", "recipient_role"),
    [
        combo
        for combo in itertools.product([True, False], list(Role), list(Role))
        if combo != (True, Role.PRIMARY_LENDER, Role.SECONDARY_LENDER)
    ],
)
def test_transfer_denied_unless_all_three_conditions_hold(
    registry: MortgageRegistry,
    primary: CallerIdentity,
    is_owner: bool,
    caller_role: Role,
    recipient_role: Role,
):
    registry.create(primary, "M1")
    mortgage = registry.repository.get("M1")
    caller = CallerIdentity("P1" if is_owner else "P2", caller_role)

    with pytest.raises(PermissionDenied):
        registry.transfer(mortgage, caller, "S1", recipient_role)

    assert mortgage.owner == "P1"
    assert registry.repository.get("M1").owner == "P1"


def test_secondary_lender_cannot_pass_mortgage_on(registry: MortgageRegistry, primary: CallerIdentity):
    mortgage = registry.create(primary, "M1")
    registry.transfer(mortgage, primary, "S1", Role.SECONDARY_LENDER)

    current = registry.repository.get("M1")
    with pytest.raises(PermissionDenied):
        registry.transfer(current, CallerIdentity("S1", Role.SECONDARY_LENDER), "S2", Role.SECONDARY_LENDER)


# -----------------------------------------------------------------------------
# Reads
# -----------------------------------------------------------------------------


def test_get_details_is_owner_only(registry: MortgageRegistry, primary: CallerIdentity, regulator: CallerIdentity):
    mortgage = registry.create(primary, "M1")

    assert registry.get_details(mortgage, primary).mortgage_id == "M1"
    with pytest.raises(PermissionDenied):
        registry.get_details(mortgage, CallerIdentity("P2", Role.PRIMARY_LENDER))
    # No affiliation override, not even for the regulator
    with pytest.raises(PermissionDenied):
        registry.get_details(mortgage, regulator)


def test_list_visible_returns_only_callers_mortgages_in_creation_order(registry: MortgageRegistry):
    p1 = CallerIdentity("P1", Role.PRIMARY_LENDER)
    p2 = CallerIdentity("P2", Role.PRIMARY_LENDER)
    registry.create(p1, "M1")
    registry.create(p2, "M2")
    registry.create(p1, "M3")

    assert [m.mortgage_id for m in registry.list_visible(p1)] == ["M1", "M3"]
    assert [m.mortgage_id for m in registry.list_visible(p2)] == ["M2"]


def test_list_visible_follows_transfers(registry: MortgageRegistry, primary: CallerIdentity, secondary: CallerIdentity):
    registry.create(primary, "M1")
    registry.create(primary, "M2")
    registry.transfer(registry.repository.get("M1"), primary, "S1", Role.SECONDARY_LENDER)

    assert [m.mortgage_id for m in registry.list_visible(primary)] == ["M2"]
    assert [m.mortgage_id for m in registry.list_visible(secondary)] == ["M1"]


def test_list_visible_empty_cases(registry: MortgageRegistry, primary: CallerIdentity, regulator: CallerIdentity):
    assert registry.list_visible(primary) == []
    registry.create(primary, "M1")
    assert registry.list_visible(regulator) == []


def test_list_visible_aborts_on_dangling_index_entry(
    initialized_store: MemoryStateStore, registry: MortgageRegistry, primary: CallerIdentity
):
    registry.create(primary, "M1")
    initialized_store.put(INDEX_KEY, MortgageIndex(["M1", "GHOST"]).to_json())

    with pytest.raises(RetrievalFailure):
        registry.list_visible(primary)


def test_list_visible_aborts_on_corrupt_record_even_if_not_callers(
    initialized_store: MemoryStateStore, registry: MortgageRegistry, primary: CallerIdentity
):
    registry.create(primary, "M1")
    registry.create(primary, "M2")
    initialized_store.put("M2", b"{broken")

    with pytest.raises(RetrievalFailure):
        registry.list_visible(CallerIdentity("someone-else", Role.REGULATOR))


# -----------------------------------------------------------------------------
# CheckUnique / Ping
# -----------------------------------------------------------------------------


def test_check_unique_flips_after_create(registry: MortgageRegistry, primary: CallerIdentity):
    before = registry.check_unique("M1")
    assert before.unique is True
    assert before.warning is None

    registry.create(primary, "M1")

    after = registry.check_unique("M1")
    assert not after
    assert after.warning == "mortgage is not unique"


def test_ping_is_constant(registry: MortgageRegistry, primary: CallerIdentity):
    assert registry.ping() == PING_RESPONSE == "Hello, world!"
    registry.create(primary, "M1")
    assert registry.ping() == PING_RESPONSE


# -----------------------------------------------------------------------------
# Repository
# -----------------------------------------------------------------------------


def test_repository_get_distinguishes_absent_from_corrupt(initialized_store: MemoryStateStore):
    repository = MortgageRepository(initialized_store)
    initialized_store.put("BAD", b"nope")

    with pytest.raises(NotFound):
        repository.get("MISSING")
    with pytest.raises(CorruptRecord):
        repository.get("BAD")


def test_repository_rejects_record_stored_under_another_key(initialized_store: MemoryStateStore):
    initialized_store.put("M1", Mortgage(mortgage_id="M9", owner="P1").to_json())
    with pytest.raises(CorruptRecord):
        MortgageRepository(initialized_store).get("M1")


def test_repository_list_ids_requires_index(store: MemoryStateStore):
    with pytest.raises(NotFound):
        MortgageRepository(store).list_ids()
