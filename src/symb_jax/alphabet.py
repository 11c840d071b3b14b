"""Symbol alphabet: operation kinds, arities and the arity pools."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Final

from .errors import UnknownSymbolError


class Arity(IntEnum):
    NULLARY = 0
    UNARY = 1
    BINARY = 2


class OpKind(str, Enum):
    """One member per symbol; the value is the symbol character."""

    ZERO = "0"
    ONE = "1"
    PI = "P"
    PARAM_A = "a"
    PARAM_B = "b"
    PARAM_C = "c"
    VAR_X = "x"
    VAR_Y = "y"
    VAR_Z = "z"

    NEGATE = "~"
    INVERT = "\\"
    INCREMENT = ">"
    DECREMENT = "<"
    SIN = "S"
    COS = "C"
    TAN = "T"
    SQUARE = "2"
    ROOT = "R"
    LOG = "L"
    HALF = "H"

    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def arity(self) -> Arity:
        return _ARITY[self]


_NULLARY_KINDS: Final[tuple[OpKind, ...]] = (
    OpKind.ZERO,
    OpKind.ONE,
    OpKind.PI,
    OpKind.PARAM_A,
    OpKind.PARAM_B,
    OpKind.PARAM_C,
    OpKind.VAR_X,
    OpKind.VAR_Y,
    OpKind.VAR_Z,
)
_UNARY_KINDS: Final[tuple[OpKind, ...]] = (
    OpKind.NEGATE,
    OpKind.INVERT,
    OpKind.INCREMENT,
    OpKind.DECREMENT,
    OpKind.SIN,
    OpKind.COS,
    OpKind.TAN,
    OpKind.SQUARE,
    OpKind.ROOT,
    OpKind.LOG,
    OpKind.HALF,
)
_BINARY_KINDS: Final[tuple[OpKind, ...]] = (
    OpKind.ADD,
    OpKind.SUBTRACT,
    OpKind.MULTIPLY,
    OpKind.DIVIDE,
)

_ARITY: Final[dict[OpKind, Arity]] = {
    **{kind: Arity.NULLARY for kind in _NULLARY_KINDS},
    **{kind: Arity.UNARY for kind in _UNARY_KINDS},
    **{kind: Arity.BINARY for kind in _BINARY_KINDS},
}

if set(_ARITY) != set(OpKind) or len(_ARITY) != len(_NULLARY_KINDS) + len(_UNARY_KINDS) + len(_BINARY_KINDS):
    raise RuntimeError("every OpKind must belong to exactly one arity class")

_BY_SYMBOL: Final[dict[str, OpKind]] = {kind.value: kind for kind in OpKind}

ALPHABET: Final[frozenset[str]] = frozenset(_BY_SYMBOL)

DESCRIPTIONS: Final[dict[OpKind, str]] = {
    OpKind.ZERO: "push 0",
    OpKind.ONE: "push 1",
    OpKind.PI: "push pi",
    OpKind.PARAM_A: "push parameter a",
    OpKind.PARAM_B: "push parameter b",
    OpKind.PARAM_C: "push parameter c",
    OpKind.VAR_X: "push variable x",
    OpKind.VAR_Y: "push variable y",
    OpKind.VAR_Z: "push variable z",
    OpKind.NEGATE: "v -> -v",
    OpKind.INVERT: "v -> 1/v",
    OpKind.INCREMENT: "v -> v+1",
    OpKind.DECREMENT: "v -> v-1",
    OpKind.SIN: "v -> sin(v)",
    OpKind.COS: "v -> cos(v)",
    OpKind.TAN: "v -> tan(v)",
    OpKind.SQUARE: "v -> v*v",
    OpKind.ROOT: "v -> sqrt(v)",
    OpKind.LOG: "v -> ln(v)",
    OpKind.HALF: "v -> v/2",
    OpKind.ADD: "l, r -> l+r",
    OpKind.SUBTRACT: "l, r -> l-r",
    OpKind.MULTIPLY: "l, r -> l*r",
    OpKind.DIVIDE: "l, r -> l/r",
}


def op_kind(symbol: str, *, position: int | None = None) -> OpKind:
    kind = _BY_SYMBOL.get(symbol)
    if kind is None:
        raise UnknownSymbolError(symbol, position)
    return kind


def arity_of(symbol: str) -> Arity:
    return op_kind(symbol).arity


def stack_effect(arity: Arity) -> int:
    """Net change in stack height when an operation of ``arity`` runs."""
    return 1 - int(arity)


def stack_profile(expr: str) -> tuple[int, ...]:
    """Simulated stack depth after each symbol, starting from an empty stack.

    The depth is tracked purely from arities, so it can go negative for
    malformed strings; callers decide what that means.
    """
    depth = 0
    profile: list[int] = []
    for position, symbol in enumerate(expr):
        depth += stack_effect(op_kind(symbol, position=position).arity)
        profile.append(depth)
    return tuple(profile)


def is_well_formed(expr: str) -> bool:
    """True when ``expr`` never underflows and leaves exactly one value."""
    depth = 0
    for position, symbol in enumerate(expr):
        arity = op_kind(symbol, position=position).arity
        if depth < int(arity):
            return False
        depth += stack_effect(arity)
    return depth == 1


@dataclass(frozen=True)
class SymbolPools:
    """Per-arity symbol pools the generator draws from."""

    nullary: tuple[str, ...]
    unary: tuple[str, ...]
    binary: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "nullary", tuple(self.nullary))
        object.__setattr__(self, "unary", tuple(self.unary))
        object.__setattr__(self, "binary", tuple(self.binary))

        seen: set[str] = set()
        for expected, pool in ((Arity.NULLARY, self.nullary), (Arity.UNARY, self.unary), (Arity.BINARY, self.binary)):
            if not pool:
                raise ValueError(f"{expected.name.lower()} pool must not be empty")
            for symbol in pool:
                kind = _BY_SYMBOL.get(symbol)
                if kind is None:
                    raise ValueError(f"{symbol!r} is not in the symbol alphabet")
                if kind.arity != expected:
                    raise ValueError(
                        f"{symbol!r} has arity {kind.arity.name.lower()} but is in the {expected.name.lower()} pool"
                    )
                if symbol in seen:
                    raise ValueError(f"{symbol!r} appears in more than one pool position")
                seen.add(symbol)

    def pool(self, arity: Arity) -> tuple[str, ...]:
        if arity == Arity.NULLARY:
            return self.nullary
        if arity == Arity.UNARY:
            return self.unary
        return self.binary

    @classmethod
    def from_strings(cls, nullary: str, unary: str, binary: str) -> "SymbolPools":
        return cls(tuple(nullary), tuple(unary), tuple(binary))


FULL_POOLS: Final[SymbolPools] = SymbolPools(
    nullary=tuple(kind.value for kind in _NULLARY_KINDS),
    unary=tuple(kind.value for kind in _UNARY_KINDS),
    binary=tuple(kind.value for kind in _BINARY_KINDS),
)

# Restricted pools the antiderivative search draws from by default.
SEARCH_POOLS: Final[SymbolPools] = SymbolPools.from_strings("1xP", "\\~><CS2RLH", "+-/*")
