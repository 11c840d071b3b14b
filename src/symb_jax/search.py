"""Random search for expressions whose derivative matches a target."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Final, Literal

import numpy as np

from .alphabet import SEARCH_POOLS, SymbolPools
from .compiler import CompiledExpression, compile_expression
from .engine import EvaluationContext
from .errors import StackOverflow
from .generator import ExpressionGenerator

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_POINTS: Final[tuple[float, ...]] = (0.2, 0.5, 0.9, 1.5, 2.0, 3.0)

_STEP: Final[float] = float(np.cbrt(np.finfo(np.float64).eps))

Method = Literal["central", "autodiff"]


def central_difference(func: Callable[[float], float], x: float) -> float:
    """Central finite-difference estimate of ``func'(x)``."""
    return (func(x + _STEP) - func(x - _STEP)) / (2.0 * _STEP)


@dataclass(frozen=True)
class Target:
    name: str
    fn: Callable[[float], float]
    description: str


TARGETS: Final[dict[str, Target]] = {
    target.name: target
    for target in (
        Target("cos-tan", lambda x: math.cos(x) - math.tan(x), "cos(x) - tan(x)"),
        Target("cos", math.cos, "cos(x)"),
        Target("inverse", lambda x: 1.0 / x, "1/x"),
        Target("x-cos", lambda x: x * math.cos(x), "x*cos(x)"),
        Target("sec2", lambda x: 1.0 / math.cos(x) ** 2, "1/cos(x)^2"),
        Target("zero", lambda x: 0.0, "0"),
    )
}


def get_target(name: str) -> Target:
    try:
        return TARGETS[name]
    except KeyError:
        raise KeyError(f"unknown target {name!r}; choose one of {', '.join(sorted(TARGETS))}") from None


def _autodiff_derivative(compiled: CompiledExpression) -> Callable[[float], float]:
    from .lowering import lower_to_jax

    grad_fn = lower_to_jax(compiled).grad(argnum=0)
    return lambda x: float(grad_fn(x))


def derivative_loss(
    compiled: CompiledExpression,
    target: Callable[[float], float],
    points: tuple[float, ...] = DEFAULT_SAMPLE_POINTS,
    *,
    context: EvaluationContext | None = None,
    method: Method = "central",
) -> float:
    """Sum of squared errors between the candidate's derivative and ``target``.

    Non-finite candidates score ``inf``.
    """
    if method == "central":
        ctx = context if context is not None else EvaluationContext()

        def derivative(x: float) -> float:
            return central_difference(lambda y: ctx.run(compiled, y), x)

    elif method == "autodiff":
        derivative = _autodiff_derivative(compiled)
    else:
        raise ValueError(f"unknown derivative method {method!r}")

    loss = 0.0
    for x in points:
        delta = derivative(x) - target(x)
        loss += delta * delta
    if not math.isfinite(loss):
        return math.inf
    return loss


@dataclass(frozen=True)
class SearchConfig:
    seed: int = 15
    generator_seed: int = 14
    min_length: int = 2
    max_length: int = 21
    tolerance: float = 1e-5
    max_attempts: int | None = None
    report_every: int = 500_000
    pools: SymbolPools = field(default=SEARCH_POOLS)
    method: Method = "central"

    def __post_init__(self) -> None:
        if self.min_length < 1 or self.max_length < self.min_length:
            raise ValueError(f"invalid length range [{self.min_length}, {self.max_length}]")
        if self.tolerance <= 0:
            raise ValueError("tolerance must be positive")
        if self.max_attempts is not None and self.max_attempts < 0:
            raise ValueError("max_attempts must be non-negative")
        if self.report_every < 1:
            raise ValueError("report_every must be positive")


@dataclass(frozen=True)
class SearchResult:
    attempt: int
    expression: str
    loss: float
    elapsed: float = 0.0


def random_search(
    target: Callable[[float], float] | str,
    config: SearchConfig | None = None,
    *,
    points: tuple[float, ...] = DEFAULT_SAMPLE_POINTS,
    context: EvaluationContext | None = None,
) -> SearchResult | None:
    """Draw random expressions until one's derivative fits ``target``.

    Returns ``None`` when ``config.max_attempts`` is exhausted.
    """
    cfg = config if config is not None else SearchConfig()
    fn = get_target(target).fn if isinstance(target, str) else target
    ctx = context if context is not None else EvaluationContext()
    lengths = np.random.default_rng(cfg.seed)
    generator = ExpressionGenerator(cfg.generator_seed, pools=cfg.pools)

    logger.info("Search started (tolerance=%g, lengths %d..%d)", cfg.tolerance, cfg.min_length, cfg.max_length)
    started = time.perf_counter()
    attempt = 0
    while cfg.max_attempts is None or attempt < cfg.max_attempts:
        attempt += 1
        length = int(lengths.integers(cfg.min_length, cfg.max_length + 1))
        expr = generator.generate(length)
        compiled = compile_expression(expr, use_cache=False)
        try:
            loss = derivative_loss(compiled, fn, points, context=ctx, method=cfg.method)
        except StackOverflow:
            logger.debug("Rejected %s: exceeds stack capacity", expr)
            continue

        if loss < cfg.tolerance:
            elapsed = time.perf_counter() - started
            logger.info("Attempt %d: %s loss: %.15e", attempt, expr, loss)
            return SearchResult(attempt=attempt, expression=expr, loss=loss, elapsed=elapsed)

        if attempt % cfg.report_every == 0:
            logger.info("%10dk attempts", attempt // 1000)

    logger.warning("No expression found within %d attempts", attempt)
    return None
