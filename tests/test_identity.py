"""Tests for caller identity resolution from certificate attributes."""

from __future__ import annotations

import pytest

from mortreg.errors import IdentityResolutionError
from mortreg.identity import AttributeIdentityResolver, CallerIdentity, InvocationContext
from mortreg.models import Role


def test_resolves_username_and_role():
    resolver = AttributeIdentityResolver()
    identity = resolver.resolve(InvocationContext({"username": "alice", "role": "pl"}))
    assert identity == CallerIdentity("alice", Role.PRIMARY_LENDER)


def test_accepts_long_role_names():
    resolver = AttributeIdentityResolver()
    identity = resolver.resolve(InvocationContext({"username": "bob", "role": "secondary-lender"}))
    assert identity.role is Role.SECONDARY_LENDER


@pytest.mark.parametrize(
    "attributes",
    [
        {},
        {"role": "pl"},
        {"username": "alice"},
        {"username": "  ", "role": "pl"},
        {"username": "alice", "role": "auditor"},
    ],
)
def test_missing_or_invalid_attributes_fail(attributes: dict[str, str]):
    with pytest.raises(IdentityResolutionError):
        AttributeIdentityResolver().resolve(InvocationContext(attributes))


def test_attribute_names_are_configurable():
    resolver = AttributeIdentityResolver(username_attribute="cn", role_attribute="affiliation")
    identity = resolver.resolve(InvocationContext({"cn": "carol", "affiliation": "regulator"}))
    assert identity == CallerIdentity("carol", Role.REGULATOR)
