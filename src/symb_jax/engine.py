"""Stack-machine evaluation of compiled expressions."""

from __future__ import annotations

import os
import threading
from typing import Callable, Final

import numpy as np

from .alphabet import Arity, OpKind
from .compiler import CompiledExpression, compile_expression
from .errors import StackOverflow, StackResidueError, StackUnderflow, SymbRuntimeError

STACK_CAPACITY: Final[int] = max(1, int(os.environ.get("SYMB_JAX_STACK_CAPACITY", "50")))
NUM_PARAMS: Final[int] = 3
NUM_VARS: Final[int] = 3

_Scalar = np.float64


class EvaluationStack:
    """Bounded LIFO of float64 operands."""

    __slots__ = ("capacity", "_items")

    def __init__(self, capacity: int = STACK_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"stack capacity must be positive, got {capacity}")
        self.capacity = int(capacity)
        self._items: list[_Scalar] = []

    def __len__(self) -> int:
        return len(self._items)

    def push(self, value) -> None:
        if len(self._items) >= self.capacity:
            raise StackOverflow(self.capacity)
        self._items.append(_Scalar(value))

    def pop(self) -> _Scalar:
        if not self._items:
            raise StackUnderflow()
        return self._items.pop()

    def peek(self) -> _Scalar:
        if not self._items:
            raise StackUnderflow()
        return self._items[-1]

    def clear(self) -> None:
        self._items.clear()

    def snapshot(self) -> tuple[float, ...]:
        return tuple(float(item) for item in self._items)


_NULLARY_OPS: Final[dict[OpKind, Callable[["EvaluationContext"], object]]] = {
    OpKind.ZERO: lambda ctx: 0.0,
    OpKind.ONE: lambda ctx: 1.0,
    OpKind.PI: lambda ctx: np.pi,
    OpKind.PARAM_A: lambda ctx: ctx.params[0],
    OpKind.PARAM_B: lambda ctx: ctx.params[1],
    OpKind.PARAM_C: lambda ctx: ctx.params[2],
    OpKind.VAR_X: lambda ctx: ctx.variables[0],
    OpKind.VAR_Y: lambda ctx: ctx.variables[1],
    OpKind.VAR_Z: lambda ctx: ctx.variables[2],
}

_UNARY_OPS: Final[dict[OpKind, Callable[[_Scalar], _Scalar]]] = {
    OpKind.NEGATE: lambda v: -v,
    OpKind.INVERT: lambda v: 1.0 / v,
    OpKind.INCREMENT: lambda v: v + 1.0,
    OpKind.DECREMENT: lambda v: v - 1.0,
    OpKind.SIN: np.sin,
    OpKind.COS: np.cos,
    OpKind.TAN: np.tan,
    OpKind.SQUARE: lambda v: v * v,
    OpKind.ROOT: np.sqrt,
    OpKind.LOG: np.log,
    OpKind.HALF: lambda v: v / 2.0,
}

_BINARY_OPS: Final[dict[OpKind, Callable[[_Scalar, _Scalar], _Scalar]]] = {
    OpKind.ADD: lambda left, right: left + right,
    OpKind.SUBTRACT: lambda left, right: left - right,
    OpKind.MULTIPLY: lambda left, right: left * right,
    OpKind.DIVIDE: lambda left, right: left / right,
}


def _check_dispatch_tables() -> None:
    tables = ((Arity.NULLARY, _NULLARY_OPS), (Arity.UNARY, _UNARY_OPS), (Arity.BINARY, _BINARY_OPS))
    covered: set[OpKind] = set()
    for arity, table in tables:
        for kind in table:
            if kind.arity != arity:
                raise RuntimeError(f"{kind.name} registered as {arity.name.lower()} but has arity {kind.arity.name.lower()}")
            if kind in covered:
                raise RuntimeError(f"{kind.name} registered twice")
            covered.add(kind)
    missing = set(OpKind) - covered
    if missing:
        raise RuntimeError(f"no implementation for {sorted(kind.name for kind in missing)}")


_check_dispatch_tables()


class EvaluationContext:
    """Evaluation stack plus the parameter and variable registers.

    One context serves one evaluation at a time. Give each concurrent worker
    its own context instead of sharing one.
    """

    def __init__(self, *, capacity: int = STACK_CAPACITY) -> None:
        self.stack = EvaluationStack(capacity)
        self.params: list[_Scalar] = [_Scalar(0.0)] * NUM_PARAMS
        self.variables: list[_Scalar] = [_Scalar(0.0)] * NUM_VARS

    def set_parameters(self, a: float, b: float, c: float) -> None:
        self.params = [_Scalar(a), _Scalar(b), _Scalar(c)]

    def set_variables(self, *values: float) -> None:
        """Overwrite the leading variable registers; the rest keep their values."""
        if len(values) > NUM_VARS:
            raise TypeError(f"at most {NUM_VARS} variables (x, y, z) are supported, got {len(values)}")
        for idx, value in enumerate(values):
            self.variables[idx] = _Scalar(value)

    def _execute(self, kind: OpKind, position: int) -> None:
        stack = self.stack
        try:
            nullary = _NULLARY_OPS.get(kind)
            if nullary is not None:
                stack.push(nullary(self))
                return
            unary = _UNARY_OPS.get(kind)
            if unary is not None:
                stack.push(unary(stack.pop()))
                return
            right = stack.pop()
            left = stack.pop()
            stack.push(_BINARY_OPS[kind](left, right))
        except StackUnderflow:
            raise StackUnderflow(kind.value, position) from None
        except StackOverflow:
            raise StackOverflow(stack.capacity, kind.value, position) from None

    def run(self, compiled: CompiledExpression | str, *variables: float) -> float:
        if isinstance(compiled, str):
            compiled = compile_expression(compiled)
        self.set_variables(*variables)

        stack = self.stack
        stack.clear()
        try:
            with np.errstate(all="ignore"):
                for position, kind in enumerate(compiled.ops):
                    self._execute(kind, position)
            result = stack.pop()
        except SymbRuntimeError:
            stack.clear()
            raise

        if len(stack):
            residue = len(stack)
            stack.clear()
            raise StackResidueError(residue)
        return float(result)


_LOCAL = threading.local()


def default_context() -> EvaluationContext:
    """The calling thread's context used when no context is passed."""
    ctx = getattr(_LOCAL, "context", None)
    if ctx is None:
        ctx = EvaluationContext()
        _LOCAL.context = ctx
    return ctx


def run(compiled: CompiledExpression | str, *variables: float, context: EvaluationContext | None = None) -> float:
    """Execute ``compiled`` with up to three positional variables (x, y, z)."""
    ctx = context if context is not None else default_context()
    return ctx.run(compiled, *variables)


def set_parameters(a: float, b: float, c: float, *, context: EvaluationContext | None = None) -> None:
    ctx = context if context is not None else default_context()
    ctx.set_parameters(a, b, c)
