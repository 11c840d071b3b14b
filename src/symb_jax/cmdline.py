"""Command-line entry point: generate, evaluate and search expressions."""

from __future__ import annotations

import argparse
import logging
import sys

from .alphabet import FULL_POOLS, SEARCH_POOLS
from .compiler import compile_expression
from .engine import EvaluationContext
from .errors import SymbError
from .generator import ExpressionGenerator
from .search import TARGETS, SearchConfig, random_search

logger = logging.getLogger(__name__)

_POOLS = {"search": SEARCH_POOLS, "full": FULL_POOLS}


def _cmd_generate(args: argparse.Namespace) -> int:
    generator = ExpressionGenerator(args.seed, pools=_POOLS[args.pools])
    for _ in range(args.count):
        print(generator.generate(args.length))
    return 0


def _cmd_eval(args: argparse.Namespace) -> int:
    compiled = compile_expression(args.expression)
    ctx = EvaluationContext()
    if args.params is not None:
        ctx.set_parameters(*args.params)
    print(repr(ctx.run(compiled, *args.vars)))
    return 0


def _cmd_search(args: argparse.Namespace) -> int:
    config = SearchConfig(
        seed=args.seed,
        generator_seed=args.generator_seed,
        min_length=args.min_length,
        max_length=args.max_length,
        tolerance=args.tolerance,
        max_attempts=args.max_attempts,
        report_every=args.report_every,
        pools=_POOLS[args.pools],
        method=args.method,
    )
    result = random_search(args.target, config)
    if result is None:
        return 1
    print(f"{result.attempt}: {result.expression} loss: {result.loss:.15e}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="symb-jax", description=__doc__)
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="logging verbosity (progress goes to stderr)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="print random well-formed expressions")
    gen.add_argument("--length", type=int, required=True, help="requested expression length")
    gen.add_argument("--count", type=int, default=1, help="how many expressions to print")
    gen.add_argument("--seed", type=int, default=None, help="generator seed")
    gen.add_argument("--pools", choices=sorted(_POOLS), default="search", help="symbol pools to draw from")
    gen.set_defaults(func=_cmd_generate)

    ev = sub.add_parser("eval", help="evaluate one expression")
    ev.add_argument("expression", help="expression in the symbol encoding, e.g. 'x2'")
    ev.add_argument("--vars", type=float, nargs="*", default=[], metavar="V", help="values for x, y, z")
    ev.add_argument("--params", type=float, nargs=3, default=None, metavar=("A", "B", "C"), help="values for a, b, c")
    ev.set_defaults(func=_cmd_eval)

    se = sub.add_parser("search", help="search for an antiderivative of a target function")
    se.add_argument("--target", choices=sorted(TARGETS), default="cos-tan", help="target derivative")
    se.add_argument("--tolerance", type=float, default=1e-5, help="accept when the squared error sum is below this")
    se.add_argument("--max-attempts", type=int, default=None, help="give up after this many candidates")
    se.add_argument("--seed", type=int, default=15, help="seed for the length draws")
    se.add_argument("--generator-seed", type=int, default=14, help="seed for the expression generator")
    se.add_argument("--min-length", type=int, default=2)
    se.add_argument("--max-length", type=int, default=21)
    se.add_argument("--report-every", type=int, default=500_000, help="log progress every N attempts")
    se.add_argument("--pools", choices=sorted(_POOLS), default="search", help="symbol pools to draw from")
    se.add_argument("--method", choices=("central", "autodiff"), default="central", help="derivative estimator")
    se.set_defaults(func=_cmd_search)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        return args.func(args)
    except SymbError as err:
        logger.error("%s", err)
        return 2
    except (TypeError, ValueError) as err:
        logger.error("%s", err)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
