"""Random generation of structurally valid expressions."""

from __future__ import annotations

import numbers
import os
from typing import Final

import numpy as np

from .alphabet import SEARCH_POOLS, Arity, SymbolPools

_DEFAULT_SEED: Final[int] = int(os.environ.get("SYMB_JAX_SEED", "14"))


class ExpressionGenerator:
    """Draws expressions that leave exactly one value on the stack.

    A running stack height is kept while symbols are drawn: unary symbols are
    only eligible once an operand exists and binary ones once two do. The
    last position is forced to close the expression, and any operands still
    pending afterwards are folded together with extra binary symbols, so the
    output can be longer than requested.
    """

    def __init__(self, seed: int | None = None, *, pools: SymbolPools = SEARCH_POOLS) -> None:
        self.pools = pools
        self._rng = np.random.default_rng(seed)

    def seed(self, value: int | None) -> None:
        self._rng = np.random.default_rng(value)

    def _draw(self, pool: tuple[str, ...]) -> str:
        return pool[int(self._rng.integers(len(pool)))]

    def random_length(self, low: int, high: int) -> int:
        """Uniform integer in ``[low, high]``."""
        if low < 1 or high < low:
            raise ValueError(f"invalid length range [{low}, {high}]")
        return int(self._rng.integers(low, high + 1))

    def generate(self, length: int) -> str:
        if isinstance(length, bool) or not isinstance(length, numbers.Integral):
            raise TypeError(f"length must be an integer, got {type(length).__name__}")
        if length < 1:
            raise ValueError(f"length must be positive, got {length}")

        out: list[str] = []
        stack_size = 0
        last = int(length) - 1
        for i in range(int(length)):
            if i == last:
                if stack_size == 0:
                    arity = Arity.NULLARY
                elif stack_size == 1:
                    arity = Arity.UNARY
                else:
                    arity = Arity.BINARY
            else:
                roof = 3 if stack_size >= 2 else stack_size + 1
                arity = Arity(int(self._rng.integers(roof)))

            out.append(self._draw(self.pools.pool(arity)))
            if arity == Arity.NULLARY:
                stack_size += 1
            elif arity == Arity.BINARY:
                stack_size -= 1

        while stack_size > 1:
            out.append(self._draw(self.pools.binary))
            stack_size -= 1

        return "".join(out)


_DEFAULT_GENERATOR = ExpressionGenerator(_DEFAULT_SEED)


def default_generator() -> ExpressionGenerator:
    return _DEFAULT_GENERATOR


def seed(value: int | None) -> None:
    """Reseed the module-level generator used by :func:`generate`."""
    _DEFAULT_GENERATOR.seed(value)


def generate(length: int) -> str:
    """Random well-formed expression of at least ``length`` symbols."""
    return _DEFAULT_GENERATOR.generate(length)
