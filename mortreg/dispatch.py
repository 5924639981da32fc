"""
Function-name dispatch for the invocation surface.

Names arriving from clients are parsed into a closed set of typed
invocations, each carrying its own arguments. Anything not in the table
for the requested surface is rejected with UnknownFunction.

Surfaces:
- invoke: may write (create_mortgage, pl_to_sl, ping)
- query: read-only (get_mortgage_details, check_unique_mortgage,
  get_mortgages, get_ecert, ping)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence, Union

from .errors import InvalidArguments, UnknownFunction


class Surface(str, Enum):
    INVOKE = "invoke"
    QUERY = "query"


@dataclass(frozen=True)
class CreateMortgage:
    mortgage_id: str


@dataclass(frozen=True)
class TransferToSecondaryLender:
    recipient_id: str
    mortgage_id: str


@dataclass(frozen=True)
class GetMortgageDetails:
    mortgage_id: str


@dataclass(frozen=True)
class CheckUniqueMortgage:
    mortgage_id: str


@dataclass(frozen=True)
class GetMortgages:
    pass


@dataclass(frozen=True)
class GetEcert:
    name: str


@dataclass(frozen=True)
class Ping:
    pass


Invocation = Union[
    CreateMortgage,
    TransferToSecondaryLender,
    GetMortgageDetails,
    CheckUniqueMortgage,
    GetMortgages,
    GetEcert,
    Ping,
]


@dataclass(frozen=True)
class FunctionSpec:
    """Static metadata about one callable function."""

    name: str
    params: tuple[str, ...]
    surfaces: frozenset[Surface]
    build: Callable[[Sequence[str]], Invocation]

    @property
    def usage(self) -> str:
        return f"{self.name}({', '.join(self.params)})"


_BOTH = frozenset({Surface.INVOKE, Surface.QUERY})

FUNCTIONS: dict[str, FunctionSpec] = {
    spec.name: spec
    for spec in (
        FunctionSpec("create_mortgage", ("mortgage_id",), frozenset({Surface.INVOKE}), lambda a: CreateMortgage(a[0])),
        # Argument order as issued by existing clients: recipient first
        FunctionSpec(
            "pl_to_sl",
            ("recipient_id", "mortgage_id"),
            frozenset({Surface.INVOKE}),
            lambda a: TransferToSecondaryLender(recipient_id=a[0], mortgage_id=a[1]),
        ),
        FunctionSpec(
            "get_mortgage_details", ("mortgage_id",), frozenset({Surface.QUERY}), lambda a: GetMortgageDetails(a[0])
        ),
        FunctionSpec(
            "check_unique_mortgage", ("mortgage_id",), frozenset({Surface.QUERY}), lambda a: CheckUniqueMortgage(a[0])
        ),
        FunctionSpec("get_mortgages", (), frozenset({Surface.QUERY}), lambda a: GetMortgages()),
        FunctionSpec("get_ecert", ("name",), frozenset({Surface.QUERY}), lambda a: GetEcert(a[0])),
        FunctionSpec("ping", (), _BOTH, lambda a: Ping()),
    )
}


def parse_invocation(surface: Surface, function: str, args: Sequence[str]) -> Invocation:
    """
    Turn a function name and positional args into a typed invocation.

    Raises:
        UnknownFunction: The name is not callable on this surface
        InvalidArguments: Wrong number of arguments
    """
    spec = FUNCTIONS.get(function)
    if spec is None or surface not in spec.surfaces:
        raise UnknownFunction(function)
    if len(args) != len(spec.params):
        raise InvalidArguments(
            f"Incorrect number of arguments passed to {spec.usage}: expected {len(spec.params)}, got {len(args)}"
        )
    return spec.build(list(args))


def list_functions(surface: Surface | None = None) -> list[FunctionSpec]:
    return [spec for spec in FUNCTIONS.values() if surface is None or surface in spec.surfaces]
