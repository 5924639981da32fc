"""Data models for the mortgage registry."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import CorruptIndex, CorruptRecord

# Sentinel lendee for freshly created mortgages
UNDEFINED_LENDEE = "UNDEFINED"

# Reserved ledger key holding the mortgage index aggregate
INDEX_KEY = "mortIDs"


class Role(str, Enum):
    """Caller affiliation, as carried by the certificate ``role`` attribute."""

    REGULATOR = "regulator"
    PRIMARY_LENDER = "pl"
    SECONDARY_LENDER = "sl"

    @classmethod
    def parse(cls, value: str) -> Role:
        """Parse a wire value or its long alias (``primary-lender``)."""
        raw = (value or "").strip().lower()
        aliases = {
            "regulator": cls.REGULATOR,
            "authority": cls.REGULATOR,
            "pl": cls.PRIMARY_LENDER,
            "primary-lender": cls.PRIMARY_LENDER,
            "primary_lender": cls.PRIMARY_LENDER,
            "sl": cls.SECONDARY_LENDER,
            "secondary-lender": cls.SECONDARY_LENDER,
            "secondary_lender": cls.SECONDARY_LENDER,
        }
        try:
            return aliases[raw]
        except KeyError:
            raise ValueError(f"Unknown role: {value!r}") from None


@dataclass
class Mortgage:
    """
    A tracked ownership record.

    ``mortgage_id`` never changes after creation; ``owner`` is only
    reassigned by a successful transfer.
    """

    mortgage_id: str
    owner: str
    lendee: str = UNDEFINED_LENDEE

    def to_dict(self) -> dict[str, str]:
        """Serialize using the ledger field names."""
        return {
            "mortID": self.mortgage_id,
            "lendee": self.lendee,
            "owner": self.owner,
        }

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_dict(cls, data: Any) -> Mortgage:
        if not isinstance(data, dict):
            raise CorruptRecord(f"Mortgage record is not an object: {data!r}")
        values: dict[str, str] = {}
        for name in ("mortID", "lendee", "owner"):
            value = data.get(name)
            if not isinstance(value, str):
                raise CorruptRecord(f"Mortgage record field {name!r} missing or not a string")
            values[name] = value
        if not values["mortID"]:
            raise CorruptRecord("Mortgage record has an empty mortID")
        return cls(mortgage_id=values["mortID"], owner=values["owner"], lendee=values["lendee"])

    @classmethod
    def from_json(cls, raw: bytes) -> Mortgage:
        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CorruptRecord(f"Corrupt mortgage record {raw!r}") from exc
        return cls.from_dict(data)


@dataclass
class MortgageIndex:
    """Ordered, append-only list of every mortgage id ever created."""

    mortgage_ids: list[str] = field(default_factory=list)

    def appended(self, mortgage_id: str) -> MortgageIndex:
        return MortgageIndex(mortgage_ids=[*self.mortgage_ids, mortgage_id])

    def to_json(self) -> bytes:
        return json.dumps({INDEX_KEY: list(self.mortgage_ids)}, separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes) -> MortgageIndex:
        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CorruptIndex(f"Corrupt {INDEX_KEY} record {raw!r}") from exc
        if not isinstance(data, dict):
            raise CorruptIndex(f"{INDEX_KEY} record is not an object")
        ids = data.get(INDEX_KEY)
        # An empty holder written by older ledgers is stored as null
        if ids is None:
            return cls()
        if not isinstance(ids, list) or not all(isinstance(item, str) for item in ids):
            raise CorruptIndex(f"{INDEX_KEY} must be a list of strings")
        return cls(mortgage_ids=list(ids))
