"""
Audit log of registry invocations.

Every invocation that reaches the dispatcher is recorded, whether it
committed or was refused, so the history of attempts survives alongside
the ledger of committed writes.

This module provides:
- Structured JSON Lines logging of invocation outcomes
- Tolerant reading (malformed lines are skipped)
- Human-readable formatting
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass
class AuditEntry:
    """A single audit log entry."""

    timestamp: str
    surface: str  # "invoke" | "query" | "init"
    function: str
    caller: str | None = None
    role: str | None = None
    outcome: str = "ok"  # "ok" | "error"
    error_kind: str | None = None
    error: str | None = None
    keys_written: list[str] = field(default_factory=list)
    tx_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditEntry:
        """Create from dictionary."""
        return cls(
            timestamp=data["timestamp"],
            surface=data["surface"],
            function=data["function"],
            caller=data.get("caller"),
            role=data.get("role"),
            outcome=data.get("outcome", "ok"),
            error_kind=data.get("error_kind"),
            error=data.get("error"),
            keys_written=list(data.get("keys_written", [])),
            tx_id=data.get("tx_id"),
        )


def log_invocation(
    log_path: Path,
    surface: str,
    function: str,
    *,
    caller: str | None = None,
    role: str | None = None,
    error_kind: str | None = None,
    error: str | None = None,
    keys_written: list[str] | None = None,
    tx_id: str | None = None,
) -> AuditEntry:
    """
    Append one invocation outcome to the audit log.

    Args:
        log_path: Path to the audit log file (created on first write)
        surface: Which entry point was used
        function: Function name as requested by the client
        caller: Resolved caller id, if resolution succeeded
        role: Resolved caller role value
        error_kind: Error kind when the invocation failed
        error: Error message when the invocation failed
        keys_written: Ledger keys committed by the invocation
        tx_id: Ledger transaction id of the commit

    Returns:
        The created audit entry
    """
    entry = AuditEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        surface=surface,
        function=function,
        caller=caller,
        role=role,
        outcome="error" if error_kind else "ok",
        error_kind=error_kind,
        error=error,
        keys_written=keys_written or [],
        tx_id=tx_id,
    )

    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict()) + "\n")

    return entry


def read_audit_log(log_path: Path, last_n: int | None = None) -> list[AuditEntry]:
    """
    Read entries from the audit log.

    Args:
        log_path: Path to the audit log file
        last_n: If specified, return only the last N entries

    Returns:
        List of audit entries, oldest first
    """
    if not log_path.exists():
        return []

    entries = []
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    entries.append(AuditEntry.from_dict(json.loads(line)))
                except (json.JSONDecodeError, KeyError, TypeError):
                    continue  # Skip malformed lines

    if last_n is not None:
        return entries[-last_n:] if last_n > 0 else []
    return entries


def format_audit_entry(entry: AuditEntry) -> str:
    """Format an audit entry for human-readable display."""
    who = entry.caller or "?"
    if entry.role:
        who = f"{who} ({entry.role})"
    lines = [f"[{entry.timestamp}] {entry.surface} {entry.function} by {who}: {entry.outcome}"]

    if entry.error_kind:
        lines.append(f"  {entry.error_kind}: {entry.error or ''}".rstrip())
    if entry.keys_written:
        lines.append(f"  Wrote: {', '.join(entry.keys_written)}")
    if entry.tx_id:
        lines.append(f"  tx: {entry.tx_id}")

    return "\n".join(lines)
