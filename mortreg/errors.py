"""
Error kinds surfaced by the mortgage registry.

Every failure carries a stable ``kind`` string. The CLI prints it and the
audit log records it, so callers can tell a denied permission from a
corrupt record without parsing messages.
"""

from __future__ import annotations


class MortgageRegistryError(Exception):
    """Base class for all registry failures."""

    kind = "RegistryError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class PermissionDenied(MortgageRegistryError):
    kind = "PermissionDenied"


class AlreadyExists(MortgageRegistryError):
    kind = "AlreadyExists"


class NotFound(MortgageRegistryError):
    """A mortgage, the index, or a credential is absent (not corrupt)."""

    kind = "NotFound"


class CorruptRecord(MortgageRegistryError):
    kind = "CorruptRecord"


class CorruptIndex(MortgageRegistryError):
    kind = "CorruptIndex"


class StoreReadError(MortgageRegistryError):
    kind = "StoreReadError"


class StoreWriteError(MortgageRegistryError):
    kind = "StoreWriteError"


class WriteConflict(StoreWriteError):
    """A conditional write found the key at a different version than expected."""

    kind = "WriteConflict"

    def __init__(self, key: str, expected: int, actual: int):
        super().__init__(f"{key!r} is at version {actual}, expected {expected}")
        self.key = key
        self.expected = expected
        self.actual = actual


class IdentityResolutionError(MortgageRegistryError):
    kind = "IdentityResolutionError"


class UnknownFunction(MortgageRegistryError):
    kind = "UnknownFunction"

    def __init__(self, function: str):
        super().__init__(f"Received unknown function invocation {function!r}")
        self.function = function


class InvalidArguments(MortgageRegistryError):
    kind = "InvalidArguments"


class RetrievalFailure(MortgageRegistryError):
    """Listing aborted because one indexed mortgage could not be retrieved."""

    kind = "RetrievalFailure"


class BootstrapError(MortgageRegistryError):
    kind = "BootstrapError"
