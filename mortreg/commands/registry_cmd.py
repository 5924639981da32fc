"""Mortgage registry CLI commands."""

from __future__ import annotations

import json
from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..audit_log import format_audit_entry, read_audit_log
from ..chaincode import InvocationResult, MortgageChaincode
from ..config import RegistrySettings
from ..errors import MortgageRegistryError
from ..identity import AttributeIdentityResolver, InvocationContext
from ..ledger.store import FileStateStore
from ..registry.index import index_for_strategy


def build_chaincode(settings: RegistrySettings) -> MortgageChaincode:
    return MortgageChaincode(
        FileStateStore(settings.ledger_path),
        resolver=AttributeIdentityResolver(settings.username_attribute, settings.role_attribute),
        index=index_for_strategy(settings.index_strategy),
        audit_log_path=settings.audit_path if settings.audit_enabled else None,
    )


def _context(settings: RegistrySettings, user: str | None, role: str | None) -> InvocationContext:
    attributes: dict[str, str] = {}
    if user is not None:
        attributes[settings.username_attribute] = user
    if role is not None:
        attributes[settings.role_attribute] = role
    return InvocationContext(attributes=attributes)


def _report_error(exc: MortgageRegistryError) -> int:
    err = Console(stderr=True)
    err.print(f"{exc.kind}: {exc.message}", style="bold red", markup=False, soft_wrap=True)
    return 1


def _print_result(result: InvocationResult) -> None:
    console = Console()
    err = Console(stderr=True)
    if result.payload:
        console.print(result.text, markup=False, highlight=False, emoji=False, soft_wrap=True)
    if result.warning:
        err.print(f"warning: {result.warning}", style="yellow", markup=False)
    if result.tx_id:
        err.print(f"tx: {result.tx_id}", style="dim")


def run_init(settings: RegistrySettings, args: Sequence[str]) -> int:
    err = Console(stderr=True)
    try:
        result = build_chaincode(settings).init(list(args))
    except MortgageRegistryError as exc:
        return _report_error(exc)
    err.print(f"initialized: {settings.ledger_path}", style="green")
    if result.tx_id:
        err.print(f"tx: {result.tx_id}", style="dim")
    return 0


def run_invoke(
    settings: RegistrySettings,
    function: str,
    args: Sequence[str],
    *,
    user: str | None,
    role: str | None,
) -> int:
    try:
        result = build_chaincode(settings).invoke(function, list(args), _context(settings, user, role))
    except MortgageRegistryError as exc:
        return _report_error(exc)
    _print_result(result)
    return 0


def run_query(
    settings: RegistrySettings,
    function: str,
    args: Sequence[str],
    *,
    user: str | None,
    role: str | None,
    output_json: bool = False,
) -> int:
    try:
        result = build_chaincode(settings).query(function, list(args), _context(settings, user, role))
    except MortgageRegistryError as exc:
        return _report_error(exc)

    if function != "get_mortgages" or output_json:
        _print_result(result)
        return 0

    table = Table(title="Mortgages")
    table.add_column("mortID", style="cyan", no_wrap=True)
    table.add_column("owner", style="magenta")
    table.add_column("lendee")
    for record in json.loads(result.text or "[]"):
        table.add_row(escape(record["mortID"]), escape(record["owner"]), escape(record["lendee"]))
    Console().print(table)
    return 0


def run_history(settings: RegistrySettings, *, key: str | None = None, limit: int | None = None) -> int:
    console = Console()
    try:
        entries = list(FileStateStore(settings.ledger_path).iter_entries())
    except MortgageRegistryError as exc:
        return _report_error(exc)

    if key is not None:
        entries = [e for e in entries if e.key == key]
    if limit is not None:
        entries = entries[-limit:] if limit > 0 else []

    table = Table(title="Ledger")
    table.add_column("seq", justify="right")
    table.add_column("tx_id", style="dim", no_wrap=True)
    table.add_column("key", style="cyan")
    table.add_column("actor", style="magenta")
    table.add_column("timestamp")
    table.add_column("value")

    for e in entries:
        value = e.value.decode("utf-8", errors="replace")
        table.add_row(
            str(e.seq),
            e.tx_id,
            escape(e.key),
            escape(e.actor),
            e.timestamp.isoformat(timespec="seconds"),
            escape((value[:48] + "…") if len(value) > 48 else value),
        )

    console.print(table)
    return 0


def run_audit(settings: RegistrySettings, *, last_n: int | None = None) -> int:
    console = Console()
    entries = read_audit_log(settings.audit_path, last_n=last_n)
    if not entries:
        console.print("No audit entries.", style="dim")
        return 0
    for entry in entries:
        console.print(format_audit_entry(entry), markup=False, highlight=False, soft_wrap=True)
    return 0
