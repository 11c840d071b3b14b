"""Profile generate/compile/run throughput of the stack engine."""

from __future__ import annotations

import argparse
import json
import math
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

from symb_jax import EvaluationContext, ExpressionGenerator, compile_expression, lower_to_jax


@dataclass(frozen=True)
class Row:
    name: str
    length: int
    mean_us: float
    p50_us: float
    p95_us: float
    min_us: float
    max_us: float
    repeats: int
    samples: int


def _percentile(values: list[float], q: float) -> float:
    ordered = sorted(values)
    if len(ordered) == 1:
        return ordered[0]
    pos = (len(ordered) - 1) * q
    lo = int(math.floor(pos))
    hi = int(math.ceil(pos))
    if lo == hi:
        return ordered[lo]
    alpha = pos - lo
    return ordered[lo] * (1.0 - alpha) + ordered[hi] * alpha


def _time(name: str, length: int, fn, *, repeats: int, samples: int) -> Row:
    rows: list[float] = []
    for _ in range(samples):
        start = time.perf_counter()
        for _ in range(repeats):
            fn()
        end = time.perf_counter()
        rows.append((end - start) * 1e6 / repeats)
    return Row(
        name=name,
        length=length,
        mean_us=sum(rows) / len(rows),
        p50_us=_percentile(rows, 0.50),
        p95_us=_percentile(rows, 0.95),
        min_us=min(rows),
        max_us=max(rows),
        repeats=repeats,
        samples=samples,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--lengths", default="2,8,21", help="comma-separated expression lengths")
    parser.add_argument("--repeats", type=int, default=2000, help="calls per timing sample")
    parser.add_argument("--samples", type=int, default=3, help="timing samples")
    parser.add_argument("--seed", type=int, default=14, help="generator seed")
    parser.add_argument("--json-out", default="", help="optional output JSON")
    args = parser.parse_args()

    lengths = [int(x.strip()) for x in args.lengths.split(",") if x.strip()]
    generator = ExpressionGenerator(args.seed)
    ctx = EvaluationContext()

    rows: list[Row] = []
    print("Stack engine benchmark")
    for length in lengths:
        expr = generator.generate(length)
        compiled = compile_expression(expr)
        jitted = lower_to_jax(compiled).jit()
        jitted(0.7)

        cases = (
            ("generate", lambda: generator.generate(length)),
            ("compile", lambda: compile_expression(expr, use_cache=False)),
            ("run", lambda: ctx.run(compiled, 0.7)),
            ("jax_jit", lambda: jitted(0.7).block_until_ready()),
        )
        for name, fn in cases:
            row = _time(name, length, fn, repeats=args.repeats, samples=args.samples)
            rows.append(row)
            print(f"{name:10} len={length:3d} mean={row.mean_us:9.2f}us p95={row.p95_us:9.2f}us")

    if args.json_out:
        outpath = Path(args.json_out)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "timestamp_utc": datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ"),
            "lengths": lengths,
            "samples": args.samples,
            "rows": [asdict(row) for row in rows],
        }
        outpath.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote JSON: {outpath}")


if __name__ == "__main__":
    main()
