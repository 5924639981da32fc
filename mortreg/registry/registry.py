"""
Mortgage lifecycle state machine.

States per mortgage: nonexistent -> owned(owner). The only transition after
creation is a change of owner; mortgages are never closed or deleted.

Every operation takes the resolved caller explicitly. Writes go through the
repository's store, which the dispatcher scopes to one transaction, so a
refused or failed operation commits nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import (
    AlreadyExists,
    InvalidArguments,
    MortgageRegistryError,
    PermissionDenied,
    RetrievalFailure,
)
from ..identity import CallerIdentity
from ..models import Mortgage, Role
from .policy import can_create, can_transfer, can_view
from .repository import MortgageRepository

logger = logging.getLogger(__name__)

PING_RESPONSE = "Hello, world!"


@dataclass(frozen=True)
class UniquenessCheck:
    """Result of check_unique: a verdict plus a non-fatal warning when taken."""

    mortgage_id: str
    unique: bool
    warning: str | None = None

    def __bool__(self) -> bool:
        return self.unique


class MortgageRegistry:
    """Create, transfer and read mortgages under the role rules."""

    def __init__(self, repository: MortgageRepository):
        self.repository = repository

    def create(self, caller: CallerIdentity, mortgage_id: str) -> Mortgage:
        """
        Originate a mortgage owned by the caller.

        Raises:
            PermissionDenied: Caller is not a primary lender
            InvalidArguments: Empty mortgage id
            AlreadyExists: An entry already exists under mortgage_id
            NotFound / CorruptIndex: The index cannot be read
        """
        allowed, reason = can_create(caller)
        if not allowed:
            logger.warning("create_mortgage denied for %s: %s", caller.caller_id, reason)
            raise PermissionDenied(f"create_mortgage: {reason}")
        if not mortgage_id or not mortgage_id.strip():
            raise InvalidArguments("Invalid mortID provided")
        if self.repository.exists(mortgage_id):
            raise AlreadyExists(f"Mortgage {mortgage_id!r} already exists")

        # Read the index before writing anything so a broken index fails the
        # call with no pending writes.
        self.repository.list_ids()

        mortgage = Mortgage(mortgage_id=mortgage_id, owner=caller.caller_id)
        self.repository.put(mortgage)
        self.repository.append_id(mortgage_id)
        logger.info("created mortgage %s for %s", mortgage_id, caller.caller_id)
        return mortgage

    def transfer(
        self,
        mortgage: Mortgage,
        caller: CallerIdentity,
        recipient_id: str,
        recipient_role: Role,
    ) -> Mortgage:
        """
        Hand a mortgage from its primary-lender owner to a secondary lender.

        Raises:
            PermissionDenied: Any of the three transfer conditions fails; the
                mortgage is left untouched and nothing is written
        """
        allowed, reason = can_transfer(mortgage, caller, recipient_role)
        if not allowed:
            logger.warning("pl_to_sl denied on %s: %s", mortgage.mortgage_id, reason)
            raise PermissionDenied(f"pl_to_sl: {reason}")

        mortgage.owner = recipient_id
        self.repository.put(mortgage)
        logger.info("transferred mortgage %s from %s to %s", mortgage.mortgage_id, caller.caller_id, recipient_id)
        return mortgage

    def get_details(self, mortgage: Mortgage, caller: CallerIdentity) -> Mortgage:
        """Return the mortgage if the caller owns it."""
        if not can_view(mortgage, caller):
            raise PermissionDenied(f"get_mortgage_details: {caller.caller_id} does not own {mortgage.mortgage_id}")
        return mortgage

    def list_visible(self, caller: CallerIdentity) -> list[Mortgage]:
        """
        List the caller's mortgages in creation order.

        Mortgages the caller cannot see are skipped. A mortgage that cannot be
        retrieved at all aborts the listing.

        Raises:
            RetrievalFailure: An indexed id is missing or corrupt
        """
        visible: list[Mortgage] = []
        for mortgage_id in self.repository.list_ids():
            try:
                mortgage = self.repository.get(mortgage_id)
            except MortgageRegistryError as exc:
                raise RetrievalFailure(f"Failed to retrieve mortgage {mortgage_id!r}: {exc}") from exc
            if can_view(mortgage, caller):
                visible.append(mortgage)
        return visible

    def check_unique(self, mortgage_id: str) -> UniquenessCheck:
        if self.repository.exists(mortgage_id):
            logger.warning("mortgage %s is not unique", mortgage_id)
            return UniquenessCheck(mortgage_id, unique=False, warning="mortgage is not unique")
        return UniquenessCheck(mortgage_id, unique=True)

    @staticmethod
    def ping() -> str:
        return PING_RESPONSE
