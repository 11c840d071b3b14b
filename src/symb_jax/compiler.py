"""Compilation of symbol strings into operation sequences."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Final, Iterator

from .alphabet import Arity, OpKind, op_kind, stack_effect

if TYPE_CHECKING:
    from .engine import EvaluationContext

_COMPILE_CACHE_MAX: Final[int] = max(1, int(os.environ.get("SYMB_JAX_COMPILE_CACHE_MAX", "4096")))


@dataclass(frozen=True)
class CompiledExpression:
    """Operation sequence for one expression, one ``OpKind`` per symbol."""

    source: str
    ops: tuple[OpKind, ...]
    max_depth: int
    final_depth: int
    underflows: bool

    def __len__(self) -> int:
        return len(self.ops)

    def __iter__(self) -> Iterator[OpKind]:
        return iter(self.ops)

    @property
    def well_formed(self) -> bool:
        return not self.underflows and self.final_depth == 1

    def __call__(self, *variables: float, context: "EvaluationContext | None" = None) -> float:
        from .engine import run

        return run(self, *variables, context=context)


def _compile(expr: str) -> CompiledExpression:
    ops: list[OpKind] = []
    depth = 0
    max_depth = 0
    underflows = False
    for position, symbol in enumerate(expr):
        kind = op_kind(symbol, position=position)
        if depth < int(kind.arity):
            underflows = True
        depth += stack_effect(kind.arity)
        max_depth = max(max_depth, depth)
        ops.append(kind)
    return CompiledExpression(
        source=expr,
        ops=tuple(ops),
        max_depth=max_depth,
        final_depth=depth,
        underflows=underflows,
    )


@lru_cache(maxsize=_COMPILE_CACHE_MAX)
def _compile_cached(expr: str) -> CompiledExpression:
    return _compile(expr)


def compile_expression(expr: str, *, use_cache: bool = True) -> CompiledExpression:
    """Map each symbol of ``expr`` to its operation, in order.

    Raises ``UnknownSymbolError`` for the first character outside the
    alphabet. Ill-formed but known strings compile; they fail when run.
    """
    if not isinstance(expr, str):
        raise TypeError(f"expression must be a str, got {type(expr).__name__}")
    if use_cache:
        return _compile_cached(expr)
    return _compile(expr)


def compile_cache_stats(*, reset: bool = False) -> dict[str, float | int]:
    info = _compile_cached.cache_info()
    total = info.hits + info.misses
    stats: dict[str, float | int] = {
        "hits": int(info.hits),
        "misses": int(info.misses),
        "size": int(info.currsize),
        "max_size": int(info.maxsize) if info.maxsize is not None else 0,
        "hit_rate": float(info.hits / total) if total else 0.0,
    }
    if reset:
        _compile_cached.cache_clear()
    return stats


def arity_sequence(compiled: CompiledExpression) -> tuple[Arity, ...]:
    return tuple(kind.arity for kind in compiled.ops)
