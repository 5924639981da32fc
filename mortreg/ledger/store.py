"""
Key-value state stores backing the registry.

The registry only consumes ``get``/``put``. Concrete stores additionally
expose versions and an all-or-nothing ``apply`` so that one invocation's
writes land together (see ``transaction.py``).

Two implementations:
- MemoryStateStore: entries kept in process memory
- FileStateStore: entries appended to a JSON Lines ledger file; current
  state is the fold of all lines, replayed on open
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Mapping, Protocol, Sequence, runtime_checkable

from ..errors import StoreReadError, StoreWriteError, WriteConflict
from .entries import LedgerEntry, fold_entries, new_tx_id

logger = logging.getLogger(__name__)


@runtime_checkable
class StateStore(Protocol):
    """The key-value surface the registry reads and writes through."""

    def get(self, key: str) -> bytes | None:
        """Return the stored bytes, or None when the key is absent."""
        ...

    def put(self, key: str, value: bytes) -> None:
        """Write the whole value for key, replacing any previous value."""
        ...


class VersionedStateStore(ABC):
    """
    Base for stores that track per-key versions.

    INVARIANT: entries are only ever appended. ``apply`` is the single write
    path; every other write helper goes through it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state: dict[str, tuple[bytes, int]] = {}
        self._next_seq = 1

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, key: str) -> bytes | None:
        value, _ = self.get_versioned(key)
        return value

    def get_versioned(self, key: str) -> tuple[bytes | None, int]:
        """Return (value, version); version 0 means the key was never written."""
        with self._lock:
            if key not in self._state:
                return None, 0
            return self._state[key]

    def version(self, key: str) -> int:
        return self.get_versioned(key)[1]

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._state)

    @abstractmethod
    def iter_entries(self) -> Iterator[LedgerEntry]:
        """Iterate committed entries in sequence order."""
        ...

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def put(self, key: str, value: bytes) -> None:
        self.apply([(key, value)])

    def apply(
        self,
        writes: Sequence[tuple[str, bytes]],
        expected_versions: Mapping[str, int] | None = None,
        *,
        actor: str = "system",
    ) -> list[LedgerEntry]:
        """
        Commit a batch of writes atomically.

        Args:
            writes: Ordered (key, value) pairs
            expected_versions: Keys that must still be at the given version
            actor: Recorded on every entry of the batch

        Returns:
            The committed entries (empty when there was nothing to write)

        Raises:
            WriteConflict: An expected version no longer matches; nothing is written
            StoreWriteError: The backing medium rejected the write; nothing is written
        """
        for key, value in writes:
            if not isinstance(value, (bytes, bytearray)):
                raise TypeError(f"value for {key!r} must be bytes, got {type(value).__name__}")

        with self._lock:
            for key, expected in (expected_versions or {}).items():
                _, actual = self._state.get(key, (b"", 0))
                if actual != expected:
                    raise WriteConflict(key, expected, actual)

            if not writes:
                return []

            tx_id = new_tx_id(self._next_seq)
            timestamp = datetime.now(timezone.utc)
            entries = [
                LedgerEntry(
                    seq=self._next_seq + offset,
                    tx_id=tx_id,
                    key=key,
                    value=bytes(value),
                    timestamp=timestamp,
                    actor=actor,
                )
                for offset, (key, value) in enumerate(writes)
            ]

            self._persist(entries)

            for entry in entries:
                _, version = self._state.get(entry.key, (b"", 0))
                self._state[entry.key] = (entry.value, version + 1)
            self._next_seq += len(entries)

        logger.debug("committed tx %s: %s", tx_id, [entry.key for entry in entries])
        return entries

    @abstractmethod
    def _persist(self, entries: list[LedgerEntry]) -> None:
        """Durably record entries; must write all of them or none."""
        ...


class MemoryStateStore(VersionedStateStore):
    """Store whose ledger lives in process memory."""

    def __init__(self) -> None:
        super().__init__()
        self._entries: list[LedgerEntry] = []

    def _persist(self, entries: list[LedgerEntry]) -> None:
        self._entries.extend(entries)

    def iter_entries(self) -> Iterator[LedgerEntry]:
        yield from list(self._entries)


class FileStateStore(VersionedStateStore):
    """
    Store backed by an append-only JSON Lines ledger.

    Storage format: one LedgerEntry per line, never rewritten.
    The lock serializes writers within one process only.
    """

    def __init__(self, ledger_path: Path):
        """
        Open (or lazily create) the ledger at ledger_path and replay it.

        Raises:
            StoreReadError: The file cannot be read or a line is malformed
        """
        super().__init__()
        self.ledger_path = ledger_path
        entries = list(self.iter_entries())
        self._state = fold_entries(entries)
        self._next_seq = (entries[-1].seq + 1) if entries else 1

    def _ensure_dir(self) -> None:
        self.ledger_path.parent.mkdir(parents=True, exist_ok=True)

    def _persist(self, entries: list[LedgerEntry]) -> None:
        # One write call per batch keeps a commit on contiguous lines
        payload = "".join(entry.to_json() + "\n" for entry in entries)
        try:
            self._ensure_dir()
            with self.ledger_path.open("a", encoding="utf-8") as f:
                f.write(payload)
        except OSError as exc:
            raise StoreWriteError(f"Unable to append to ledger {self.ledger_path}: {exc}") from exc

    def iter_entries(self) -> Iterator[LedgerEntry]:
        """
        Iterate over all entries in the ledger file.

        Entries are returned in append order.
        """
        if not self.ledger_path.exists():
            return

        try:
            with self.ledger_path.open("r", encoding="utf-8") as f:
                for lineno, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        yield LedgerEntry.from_json(line)
                    except (KeyError, TypeError, ValueError, json.JSONDecodeError) as exc:
                        raise StoreReadError(
                            f"Malformed ledger entry at {self.ledger_path}:{lineno}: {exc}"
                        ) from exc
        except OSError as exc:
            raise StoreReadError(f"Unable to read ledger {self.ledger_path}: {exc}") from exc
