"""Mortgage registry core: repository, index strategies, role policy, state machine."""

from .index import INDEX_STRATEGIES, ConditionalIndex, IndexService, NonAtomicIndex, index_for_strategy
from .registry import PING_RESPONSE, MortgageRegistry, UniquenessCheck
from .repository import MortgageRepository

__all__ = [
    "INDEX_STRATEGIES",
    "ConditionalIndex",
    "IndexService",
    "NonAtomicIndex",
    "index_for_strategy",
    "PING_RESPONSE",
    "MortgageRegistry",
    "UniquenessCheck",
    "MortgageRepository",
]
