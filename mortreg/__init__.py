"""
mortreg - Mortgage ownership registry on an append-only key-value ledger.

Mortgages are originated by primary lenders, handed to secondary lenders,
and readable only by their current owner.
"""

from .chaincode import InvocationResult, MortgageChaincode
from .errors import MortgageRegistryError
from .identity import AttributeIdentityResolver, CallerIdentity, InvocationContext
from .ledger import FileStateStore, MemoryStateStore, Transaction
from .models import Mortgage, MortgageIndex, Role
from .registry import MortgageRegistry, MortgageRepository

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "AttributeIdentityResolver",
    "CallerIdentity",
    "FileStateStore",
    "InvocationContext",
    "InvocationResult",
    "MemoryStateStore",
    "Mortgage",
    "MortgageChaincode",
    "MortgageIndex",
    "MortgageRegistry",
    "MortgageRegistryError",
    "MortgageRepository",
    "Role",
    "Transaction",
]
