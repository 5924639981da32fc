"""
Immutable ledger entries.

Each line of the ledger file is one entry: a single key write. Current
state is computed by folding entries in sequence order, never by rewriting
prior lines.
"""

from __future__ import annotations

import base64
import json
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable


@dataclass(frozen=True)
class LedgerEntry:
    """One committed write."""

    seq: int  # Global, monotonic write sequence
    tx_id: str  # Shared by all writes of one commit
    key: str
    value: bytes
    timestamp: datetime
    actor: str  # Caller that produced the commit, or "system"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict (value as base64)."""
        return {
            "seq": self.seq,
            "tx_id": self.tx_id,
            "key": self.key,
            "value": base64.b64encode(self.value).decode("ascii"),
            "timestamp": self.timestamp.isoformat(),
            "actor": self.actor,
        }

    def to_json(self) -> str:
        """Serialize to JSON string (single line)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerEntry:
        return cls(
            seq=int(data["seq"]),
            tx_id=str(data["tx_id"]),
            key=str(data["key"]),
            value=base64.b64decode(data["value"], validate=True),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            actor=str(data.get("actor", "system")),
        )

    @classmethod
    def from_json(cls, line: str) -> LedgerEntry:
        return cls.from_dict(json.loads(line))


def fold_entries(entries: Iterable[LedgerEntry]) -> dict[str, tuple[bytes, int]]:
    """
    Project entries into current state.

    Returns key -> (latest value, version), where version counts the writes
    made to that key.
    """
    state: dict[str, tuple[bytes, int]] = {}
    for entry in entries:
        _, version = state.get(entry.key, (b"", 0))
        state[entry.key] = (entry.value, version + 1)
    return state


def new_tx_id(first_seq: int) -> str:
    """
    Id for a commit whose first entry gets sequence number first_seq.

    Ids sort in commit order; the random suffix tells apart commits replayed
    from different ledgers that reuse the same sequence numbers.
    """
    return f"tx-{first_seq:010d}-{uuid.uuid4().hex[:12]}"
