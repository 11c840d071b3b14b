"""Structured error types for compile/execution separation."""

from __future__ import annotations


class SymbError(Exception):
    """Base class for structured symb-jax errors."""


class UnknownSymbolError(SymbError):
    """A character outside the symbol alphabet reached the compiler."""

    def __init__(self, symbol: str, position: int | None = None) -> None:
        self.symbol = symbol
        self.position = position
        super().__init__(str(self))

    def __str__(self) -> str:
        where = "" if self.position is None else f" at position {self.position}"
        return f"Unknown symbol {self.symbol!r}{where}"


class SymbRuntimeError(SymbError):
    """Execution contract violation after a successful compile."""


class StackUnderflow(SymbRuntimeError):
    """An operation popped from an empty evaluation stack."""

    def __init__(self, symbol: str | None = None, position: int | None = None) -> None:
        self.symbol = symbol
        self.position = position
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.symbol is None:
            return "Stack underflow"
        return f"Stack underflow at symbol {self.symbol!r} (position {self.position})"


class StackOverflow(SymbRuntimeError):
    """A push exceeded the evaluation stack capacity."""

    def __init__(self, capacity: int, symbol: str | None = None, position: int | None = None) -> None:
        self.capacity = capacity
        self.symbol = symbol
        self.position = position
        super().__init__(str(self))

    def __str__(self) -> str:
        where = "" if self.symbol is None else f" at symbol {self.symbol!r} (position {self.position})"
        return f"Stack overflow: capacity {self.capacity} exceeded{where}"


class StackResidueError(SymbRuntimeError):
    """Values were left on the stack after the result was popped."""

    def __init__(self, residue: int) -> None:
        self.residue = residue
        super().__init__(f"Expression left {residue} extra value(s) on the stack")
