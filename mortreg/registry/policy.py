"""
Role and ownership rules.

Each rule returns a (allowed, reason) pair so the registry can log why a
request was refused without the rules raising themselves.
"""

from __future__ import annotations

from ..identity import CallerIdentity
from ..models import Mortgage, Role


def can_create(caller: CallerIdentity) -> tuple[bool, str]:
    """Only a primary lender originates mortgages."""
    if caller.role is not Role.PRIMARY_LENDER:
        return False, f"role {caller.role.value} is not {Role.PRIMARY_LENDER.value}"
    return True, ""


def can_transfer(mortgage: Mortgage, caller: CallerIdentity, recipient_role: Role) -> tuple[bool, str]:
    """
    Primary lender to secondary lender hand-off.

    All three must hold: the caller owns the mortgage, the caller is a
    primary lender, and the recipient is a secondary lender.
    """
    if mortgage.owner != caller.caller_id:
        return False, f"{caller.caller_id} is not the owner of {mortgage.mortgage_id}"
    if caller.role is not Role.PRIMARY_LENDER:
        return False, f"caller role {caller.role.value} is not {Role.PRIMARY_LENDER.value}"
    if recipient_role is not Role.SECONDARY_LENDER:
        return False, f"recipient role {recipient_role.value} is not {Role.SECONDARY_LENDER.value}"
    return True, ""


def can_view(mortgage: Mortgage, caller: CallerIdentity) -> bool:
    # Owner-only; no affiliation grants read access
    return mortgage.owner == caller.caller_id
