"""
Caller identity resolution.

The host platform authenticates callers and exposes certificate attributes
on each invocation. The registry never reads ambient state: the dispatcher
resolves an InvocationContext into a CallerIdentity once and passes it to
every operation explicitly.

Attributes read (names configurable):
- username: the caller id recorded as mortgage owner
- role: one of regulator / pl / sl (long aliases accepted)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol

from .errors import IdentityResolutionError
from .models import Role


@dataclass(frozen=True)
class InvocationContext:
    """Per-invocation facts supplied by the host (certificate attributes)."""

    attributes: Mapping[str, str] = field(default_factory=dict)

    def read_attribute(self, name: str) -> str | None:
        value = self.attributes.get(name)
        return value if isinstance(value, str) else None


@dataclass(frozen=True)
class CallerIdentity:
    caller_id: str
    role: Role


class IdentityResolver(Protocol):
    """Protocol for turning an invocation context into a caller identity."""

    def resolve(self, context: InvocationContext) -> CallerIdentity:
        """
        Resolve the caller.

        Raises:
            IdentityResolutionError: The attributes are missing or invalid
        """
        ...


class AttributeIdentityResolver:
    """
    Resolve callers from certificate attributes.

    Example: {"username": "alice", "role": "pl"} resolves to
    CallerIdentity("alice", Role.PRIMARY_LENDER).
    """

    def __init__(self, username_attribute: str = "username", role_attribute: str = "role"):
        self.username_attribute = username_attribute
        self.role_attribute = role_attribute

    def _require(self, context: InvocationContext, name: str) -> str:
        value = context.read_attribute(name)
        if value is None or not value.strip():
            raise IdentityResolutionError(f"Couldn't get attribute {name!r}")
        return value.strip()

    def resolve(self, context: InvocationContext) -> CallerIdentity:
        username = self._require(context, self.username_attribute)
        raw_role = self._require(context, self.role_attribute)
        try:
            role = Role.parse(raw_role)
        except ValueError as exc:
            raise IdentityResolutionError(f"Attribute {self.role_attribute!r}: {exc}") from exc
        return CallerIdentity(caller_id=username, role=role)
