"""Tests for mortgage and index serialization."""

from __future__ import annotations

import json

import pytest

from mortreg.errors import CorruptIndex, CorruptRecord
from mortreg.models import INDEX_KEY, UNDEFINED_LENDEE, Mortgage, MortgageIndex, Role


def test_mortgage_round_trip_preserves_fields():
    original = Mortgage(mortgage_id="M1", owner="P1", lendee="Jane Doe")
    restored = Mortgage.from_json(original.to_json())
    assert restored == original


def test_mortgage_serializes_with_ledger_field_names():
    data = json.loads(Mortgage(mortgage_id="M1", owner="P1").to_json())
    assert data == {"mortID": "M1", "lendee": UNDEFINED_LENDEE, "owner": "P1"}


def test_new_mortgage_defaults_lendee_to_sentinel():
    assert Mortgage(mortgage_id="M1", owner="P1").lendee == "UNDEFINED"


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b"[1, 2]",
        b'{"mortID": "M1", "owner": "P1"}',
        b'{"mortID": "M1", "lendee": "x", "owner": 7}',
        b'{"mortID": "", "lendee": "x", "owner": "P1"}',
        b"\xff\xfe",
    ],
)
def test_mortgage_rejects_malformed_bytes(raw: bytes):
    with pytest.raises(CorruptRecord):
        Mortgage.from_json(raw)


def test_index_round_trip_keeps_order():
    index = MortgageIndex(["M2", "M1", "M3"])
    assert MortgageIndex.from_json(index.to_json()).mortgage_ids == ["M2", "M1", "M3"]


def test_index_serializes_under_reserved_key():
    assert json.loads(MortgageIndex(["M1"]).to_json()) == {INDEX_KEY: ["M1"]}


def test_index_reads_null_holder_as_empty():
    assert MortgageIndex.from_json(b'{"mortIDs": null}').mortgage_ids == []


def test_index_appended_does_not_mutate_original():
    index = MortgageIndex(["M1"])
    updated = index.appended("M2")
    assert index.mortgage_ids == ["M1"]
    assert updated.mortgage_ids == ["M1", "M2"]


@pytest.mark.parametrize("raw", [b"{", b'"M1"', b'{"mortIDs": "M1"}', b'{"mortIDs": [1]}'])
def test_index_rejects_malformed_bytes(raw: bytes):
    with pytest.raises(CorruptIndex):
        MortgageIndex.from_json(raw)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("pl", Role.PRIMARY_LENDER),
        ("primary-lender", Role.PRIMARY_LENDER),
        ("SL", Role.SECONDARY_LENDER),
        ("secondary-lender", Role.SECONDARY_LENDER),
        ("regulator", Role.REGULATOR),
    ],
)
def test_role_parse_accepts_wire_values_and_aliases(value: str, expected: Role):
    assert Role.parse(value) is expected


def test_role_parse_rejects_unknown_role():
    with pytest.raises(ValueError):
        Role.parse("auditor")
