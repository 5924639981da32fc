"""
Registry entry points: bootstrap, invoke and query.

The chaincode is the single chokepoint between clients and the registry:

    parse function name -> resolve caller -> open transaction
        -> run registry operation -> commit (invoke) or discard (query)

Each call is one unit of work. A call that raises commits nothing.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from .audit_log import log_invocation
from .dispatch import (
    CheckUniqueMortgage,
    CreateMortgage,
    GetEcert,
    GetMortgageDetails,
    GetMortgages,
    Invocation,
    Ping,
    Surface,
    TransferToSecondaryLender,
    parse_invocation,
)
from .errors import BootstrapError, CorruptRecord, MortgageRegistryError, NotFound
from .identity import AttributeIdentityResolver, CallerIdentity, IdentityResolver, InvocationContext
from .ledger.store import VersionedStateStore
from .ledger.transaction import Transaction
from .models import INDEX_KEY, Mortgage, Role
from .registry.index import IndexService, NonAtomicIndex
from .registry.registry import MortgageRegistry
from .registry.repository import MortgageRepository

logger = logging.getLogger(__name__)

# Transfers issued through pl_to_sl always target a secondary lender
TRANSFER_RECIPIENT_ROLE = Role.SECONDARY_LENDER


def _is_mortgage_record(key: str, raw: bytes) -> bool:
    """True when raw is the mortgage stored under key (e.g. one dropped from the index)."""
    try:
        return Mortgage.from_json(raw).mortgage_id == key
    except CorruptRecord:
        return False


@dataclass(frozen=True)
class InvocationResult:
    """Outcome of a successful call."""

    payload: bytes | None = None
    warning: str | None = None  # Non-fatal signal (e.g. non-unique id)
    tx_id: str | None = None  # Set when the call committed writes

    @property
    def text(self) -> str:
        return self.payload.decode("utf-8") if self.payload is not None else ""


class MortgageChaincode:
    """Routes named calls to the mortgage registry over one state store."""

    def __init__(
        self,
        store: VersionedStateStore,
        *,
        resolver: IdentityResolver | None = None,
        index: IndexService | None = None,
        audit_log_path: Path | None = None,
    ):
        self.store = store
        self.resolver = resolver or AttributeIdentityResolver()
        self.index = index or NonAtomicIndex()
        self.audit_log_path = audit_log_path
        self._handlers: dict[type, Callable[[Invocation, CallerIdentity, Transaction], InvocationResult]] = {
            CreateMortgage: self._create_mortgage,
            TransferToSecondaryLender: self._pl_to_sl,
            GetMortgageDetails: self._get_mortgage_details,
            CheckUniqueMortgage: self._check_unique_mortgage,
            GetMortgages: self._get_mortgages,
            GetEcert: self._get_ecert,
            Ping: self._ping,
        }

    # -------------------------------------------------------------------------
    # Bootstrap
    # -------------------------------------------------------------------------

    def init(self, args: Sequence[str]) -> InvocationResult:
        """
        Initialize an empty registry and seed identity credentials.

        Args:
            args: Flat list of name, credential pairs

        Raises:
            BootstrapError: Odd argument count, reserved or empty name,
                registry already initialized, or the writes failed
        """
        try:
            if len(args) % 2 != 0:
                raise BootstrapError(f"Expected name/credential pairs, got {len(args)} arguments")
            pairs = list(zip(args[0::2], args[1::2]))
            for name, _ in pairs:
                if not name:
                    raise BootstrapError("Identity name must be non-empty")
                if name == INDEX_KEY:
                    raise BootstrapError(f"Identity name {INDEX_KEY!r} is reserved")

            with Transaction(self.store, actor="system") as txn:
                repository = MortgageRepository(txn, self.index)
                if repository.index_exists():
                    raise BootstrapError("Registry already initialized")
                repository.initialize_index()
                for name, credential in pairs:
                    txn.put(name, credential.encode("utf-8"))
        except MortgageRegistryError as exc:
            error = exc if isinstance(exc, BootstrapError) else BootstrapError(
                f"Error creating {INDEX_KEY} record: {exc.message}"
            )
            self._audit("init", "init", error=error)
            if error is exc:
                raise
            raise error from exc

        tx_id = txn.entries[0].tx_id if txn.entries else None
        logger.info("registry initialized with %d identities", len(pairs))
        self._audit("init", "init", txn=txn)
        return InvocationResult(tx_id=tx_id)

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def invoke(self, function: str, args: Sequence[str], context: InvocationContext) -> InvocationResult:
        """Run a state-changing call; its writes commit together or not at all."""
        return self._run(Surface.INVOKE, function, args, context)

    def query(self, function: str, args: Sequence[str], context: InvocationContext) -> InvocationResult:
        """Run a read-only call; nothing is ever committed."""
        return self._run(Surface.QUERY, function, args, context)

    def _run(
        self,
        surface: Surface,
        function: str,
        args: Sequence[str],
        context: InvocationContext,
    ) -> InvocationResult:
        caller: CallerIdentity | None = None
        txn: Transaction | None = None
        try:
            invocation = parse_invocation(surface, function, args)
            caller = self.resolver.resolve(context)
            logger.debug("function: %s", function)
            logger.debug("caller: %s", caller.caller_id)
            logger.debug("affiliation: %s", caller.role.value)

            with Transaction(
                self.store,
                actor=caller.caller_id,
                read_only=surface is Surface.QUERY,
            ) as txn:
                result = self._handlers[type(invocation)](invocation, caller, txn)
        except MortgageRegistryError as exc:
            logger.debug("%s %s failed: %s", surface.value, function, exc)
            self._audit(surface.value, function, caller=caller, error=exc)
            raise

        if txn.entries:
            result = InvocationResult(payload=result.payload, warning=result.warning, tx_id=txn.entries[0].tx_id)
        self._audit(surface.value, function, caller=caller, txn=txn)
        return result

    def _audit(
        self,
        surface: str,
        function: str,
        *,
        caller: CallerIdentity | None = None,
        txn: Transaction | None = None,
        error: MortgageRegistryError | None = None,
    ) -> None:
        if self.audit_log_path is None:
            return
        entries = txn.entries if txn is not None else []
        # Runs after commit: an unwritable audit log must not mask the outcome
        try:
            log_invocation(
                self.audit_log_path,
                surface,
                function,
                caller=caller.caller_id if caller else None,
                role=caller.role.value if caller else None,
                error_kind=error.kind if error else None,
                error=error.message if error else None,
                keys_written=[entry.key for entry in entries],
                tx_id=entries[0].tx_id if entries else None,
            )
        except OSError as exc:
            logger.warning("could not write audit log %s: %s", self.audit_log_path, exc)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _registry(self, txn: Transaction) -> MortgageRegistry:
        return MortgageRegistry(MortgageRepository(txn, self.index))

    def _create_mortgage(self, invocation: CreateMortgage, caller: CallerIdentity, txn: Transaction) -> InvocationResult:
        self._registry(txn).create(caller, invocation.mortgage_id)
        return InvocationResult()

    def _pl_to_sl(
        self, invocation: TransferToSecondaryLender, caller: CallerIdentity, txn: Transaction
    ) -> InvocationResult:
        registry = self._registry(txn)
        mortgage = registry.repository.get(invocation.mortgage_id)
        registry.transfer(mortgage, caller, invocation.recipient_id, TRANSFER_RECIPIENT_ROLE)
        return InvocationResult()

    def _get_mortgage_details(
        self, invocation: GetMortgageDetails, caller: CallerIdentity, txn: Transaction
    ) -> InvocationResult:
        registry = self._registry(txn)
        mortgage = registry.repository.get(invocation.mortgage_id)
        return InvocationResult(payload=registry.get_details(mortgage, caller).to_json())

    def _check_unique_mortgage(
        self, invocation: CheckUniqueMortgage, caller: CallerIdentity, txn: Transaction
    ) -> InvocationResult:
        check = self._registry(txn).check_unique(invocation.mortgage_id)
        return InvocationResult(payload=b"true" if check.unique else b"false", warning=check.warning)

    def _get_mortgages(self, invocation: GetMortgages, caller: CallerIdentity, txn: Transaction) -> InvocationResult:
        mortgages = self._registry(txn).list_visible(caller)
        payload = json.dumps([m.to_dict() for m in mortgages], separators=(",", ":"))
        return InvocationResult(payload=payload.encode("utf-8"))

    def _get_ecert(self, invocation: GetEcert, caller: CallerIdentity, txn: Transaction) -> InvocationResult:
        # Credentials share the key space with mortgages; only credentials are served
        name = invocation.name
        missing = NotFound(f"Couldn't retrieve ecert for user {name}")
        if name == INDEX_KEY:
            raise missing
        repository = MortgageRepository(txn, self.index)
        if repository.index_exists() and name in repository.list_ids():
            raise missing
        ecert = txn.get(name)
        if ecert is None or _is_mortgage_record(name, ecert):
            raise missing
        return InvocationResult(payload=ecert)

    def _ping(self, invocation: Ping, caller: CallerIdentity, txn: Transaction) -> InvocationResult:
        return InvocationResult(payload=MortgageRegistry.ping().encode("utf-8"))
