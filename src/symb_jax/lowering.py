"""JAX-oriented lowering and transform helpers for compiled expressions."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Final

import jax
import jax.numpy as jnp

from .alphabet import OpKind
from .compiler import CompiledExpression, compile_expression
from .engine import NUM_PARAMS, NUM_VARS, STACK_CAPACITY
from .errors import StackOverflow, StackResidueError, StackUnderflow

_ENABLE_X64: Final[bool] = os.environ.get("SYMB_JAX_ENABLE_X64", "1") != "0"

if _ENABLE_X64:
    jax.config.update("jax_enable_x64", True)

_ARG_NAMES: Final[tuple[str, ...]] = ("x", "y", "z", "a", "b", "c")

_JNP_NULLARY: Final[dict[OpKind, Callable[[tuple], object]]] = {
    OpKind.ZERO: lambda regs: jnp.zeros_like(regs[0]),
    OpKind.ONE: lambda regs: jnp.ones_like(regs[0]),
    OpKind.PI: lambda regs: jnp.full_like(regs[0], jnp.pi),
    OpKind.VAR_X: lambda regs: regs[0],
    OpKind.VAR_Y: lambda regs: regs[1],
    OpKind.VAR_Z: lambda regs: regs[2],
    OpKind.PARAM_A: lambda regs: regs[3],
    OpKind.PARAM_B: lambda regs: regs[4],
    OpKind.PARAM_C: lambda regs: regs[5],
}

_JNP_UNARY: Final[dict[OpKind, Callable[[jnp.ndarray], jnp.ndarray]]] = {
    OpKind.NEGATE: lambda v: -v,
    OpKind.INVERT: lambda v: 1.0 / v,
    OpKind.INCREMENT: lambda v: v + 1.0,
    OpKind.DECREMENT: lambda v: v - 1.0,
    OpKind.SIN: jnp.sin,
    OpKind.COS: jnp.cos,
    OpKind.TAN: jnp.tan,
    OpKind.SQUARE: lambda v: v * v,
    OpKind.ROOT: jnp.sqrt,
    OpKind.LOG: jnp.log,
    OpKind.HALF: lambda v: v / 2.0,
}

_JNP_BINARY: Final[dict[OpKind, Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray]]] = {
    OpKind.ADD: jnp.add,
    OpKind.SUBTRACT: jnp.subtract,
    OpKind.MULTIPLY: jnp.multiply,
    OpKind.DIVIDE: jnp.divide,
}

if set(_JNP_NULLARY) | set(_JNP_UNARY) | set(_JNP_BINARY) != set(OpKind):
    raise RuntimeError("JAX lowering tables do not cover every OpKind")


def _check_structure(compiled: CompiledExpression, capacity: int) -> None:
    depth = 0
    for position, kind in enumerate(compiled.ops):
        arity = int(kind.arity)
        if depth < arity:
            raise StackUnderflow(kind.value, position)
        depth += 1 - arity
        if depth > capacity:
            raise StackOverflow(capacity, kind.value, position)
    if depth == 0:
        raise StackUnderflow()
    if depth > 1:
        raise StackResidueError(depth - 1)


def _build_fn(ops: tuple[OpKind, ...]):
    def fn(x, y, z, a, b, c):
        regs = jnp.broadcast_arrays(*(jnp.asarray(v, dtype=float) for v in (x, y, z, a, b, c)))
        stack: list[jnp.ndarray] = []
        for kind in ops:
            nullary = _JNP_NULLARY.get(kind)
            if nullary is not None:
                stack.append(nullary(regs))
                continue
            unary = _JNP_UNARY.get(kind)
            if unary is not None:
                stack.append(unary(stack.pop()))
                continue
            right = stack.pop()
            left = stack.pop()
            stack.append(_JNP_BINARY[kind](left, right))
        return stack.pop()

    return fn


@dataclass
class JaxExpression:
    """Compiled expression lowered to a pure ``jax.numpy`` function.

    The function takes ``(x, y, z, a, b, c)``; calls fill unsupplied
    variables with zero and take parameters through ``params``.
    """

    compiled: CompiledExpression
    fn: Callable = field(repr=False)
    _jit_fn: object | None = field(default=None, init=False, repr=False)
    _grad_cache: dict[int, object] = field(default_factory=dict, init=False, repr=False)
    _vmap_fn: object | None = field(default=None, init=False, repr=False)

    @property
    def source(self) -> str:
        return self.compiled.source

    def _resolve_args(self, variables: tuple, params) -> tuple:
        if len(variables) > NUM_VARS:
            raise TypeError(f"at most {NUM_VARS} variables (x, y, z) are supported, got {len(variables)}")
        params = (0.0,) * NUM_PARAMS if params is None else tuple(params)
        if len(params) != NUM_PARAMS:
            raise TypeError(f"expected {NUM_PARAMS} parameters (a, b, c), got {len(params)}")
        values = tuple(variables) + (0.0,) * (NUM_VARS - len(variables))
        return values + params

    def __call__(self, *variables, params=None):
        return self.fn(*self._resolve_args(variables, params))

    def jit(self):
        """Return a JIT-compiled callable with the same signature as ``__call__``."""
        if self._jit_fn is None:
            self._jit_fn = jax.jit(self.fn)
        jitted = self._jit_fn

        def wrapped(*variables, params=None):
            return jitted(*self._resolve_args(variables, params))

        return wrapped

    def grad(self, *, argnum: int = 0):
        """Return d(expression)/d(argument) for scalar inputs.

        ``argnum`` indexes ``(x, y, z, a, b, c)``.
        """
        if not 0 <= argnum < len(_ARG_NAMES):
            raise ValueError(f"argnum must be in [0, {len(_ARG_NAMES)}), got {argnum}")
        grad_fn = self._grad_cache.get(argnum)
        if grad_fn is None:
            grad_fn = jax.grad(self.fn, argnums=argnum)
            self._grad_cache[argnum] = grad_fn

        def wrapped(*variables, params=None):
            values = tuple(jnp.asarray(v, dtype=float) for v in self._resolve_args(variables, params))
            return grad_fn(*values)

        return wrapped

    def vmap(self):
        """Return a callable mapped over the leading axis of every variable."""
        if self._vmap_fn is None:
            self._vmap_fn = jax.vmap(self.fn, in_axes=(0, 0, 0, None, None, None))
        vmapped = self._vmap_fn

        def wrapped(*variables, params=None):
            if not variables:
                raise TypeError("vmap needs at least one batched variable")
            batch = jnp.asarray(variables[0])
            filled = tuple(jnp.asarray(v) for v in variables) + tuple(
                jnp.zeros_like(batch, dtype=float) for _ in range(NUM_VARS - len(variables))
            )
            return vmapped(*self._resolve_args(filled, params))

        return wrapped


def lower_to_jax(compiled: CompiledExpression | str, *, capacity: int = STACK_CAPACITY) -> JaxExpression:
    """Lower a compiled expression to a JAX-traceable function.

    Structural errors are raised here, before any tracing happens.
    """
    if isinstance(compiled, str):
        compiled = compile_expression(compiled)
    _check_structure(compiled, capacity)
    return JaxExpression(compiled=compiled, fn=_build_fn(compiled.ops))
