"""symb-jax public API."""

from .alphabet import ALPHABET, FULL_POOLS, SEARCH_POOLS, Arity, OpKind, SymbolPools, arity_of, is_well_formed, stack_profile
from .compiler import CompiledExpression, compile_cache_stats, compile_expression
from .engine import EvaluationContext, EvaluationStack, default_context, run, set_parameters
from .errors import (
    StackOverflow,
    StackResidueError,
    StackUnderflow,
    SymbError,
    SymbRuntimeError,
    UnknownSymbolError,
)
from .generator import ExpressionGenerator, generate, seed
from .search import DEFAULT_SAMPLE_POINTS, TARGETS, SearchConfig, SearchResult, central_difference, derivative_loss, random_search

try:
    from .lowering import JaxExpression, lower_to_jax
except ModuleNotFoundError as exc:
    if exc.name and exc.name.startswith("jax"):
        _jax_import_error = exc

        def lower_to_jax(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for lower_to_jax(). Install runtime deps first."
            ) from _jax_import_error

        class JaxExpression:  # pragma: no cover - import-time fallback
            def __init__(self, *_args, **_kwargs) -> None:
                raise ModuleNotFoundError(
                    "jax is required for JaxExpression(). Install runtime deps first."
                ) from _jax_import_error

    else:
        raise

__all__ = [
    "ALPHABET",
    "FULL_POOLS",
    "SEARCH_POOLS",
    "Arity",
    "OpKind",
    "SymbolPools",
    "arity_of",
    "is_well_formed",
    "stack_profile",
    "CompiledExpression",
    "compile_expression",
    "compile_cache_stats",
    "EvaluationContext",
    "EvaluationStack",
    "default_context",
    "run",
    "set_parameters",
    "ExpressionGenerator",
    "generate",
    "seed",
    "lower_to_jax",
    "JaxExpression",
    "DEFAULT_SAMPLE_POINTS",
    "TARGETS",
    "SearchConfig",
    "SearchResult",
    "central_difference",
    "derivative_loss",
    "random_search",
    "SymbError",
    "SymbRuntimeError",
    "UnknownSymbolError",
    "StackUnderflow",
    "StackOverflow",
    "StackResidueError",
]
