from __future__ import annotations

import math
import threading
import unittest

import numpy as np

from symb_jax.compiler import compile_expression
from symb_jax.engine import STACK_CAPACITY, EvaluationContext, EvaluationStack, default_context, run, set_parameters
from symb_jax.errors import StackOverflow, StackResidueError, StackUnderflow, SymbRuntimeError


class EvaluationStackTests(unittest.TestCase):
    def test_push_pop_peek(self) -> None:
        stack = EvaluationStack(3)
        stack.push(1.0)
        stack.push(2)
        self.assertEqual(len(stack), 2)
        self.assertEqual(float(stack.peek()), 2.0)
        self.assertEqual(stack.snapshot(), (1.0, 2.0))
        self.assertEqual(float(stack.pop()), 2.0)
        self.assertEqual(float(stack.pop()), 1.0)
        with self.assertRaises(StackUnderflow):
            stack.pop()
        with self.assertRaises(StackUnderflow):
            stack.peek()

    def test_capacity_is_enforced(self) -> None:
        stack = EvaluationStack(2)
        stack.push(1.0)
        stack.push(1.0)
        with self.assertRaises(StackOverflow) as ctx:
            stack.push(1.0)
        self.assertEqual(ctx.exception.capacity, 2)
        self.assertEqual(len(stack), 2)

    def test_invalid_capacity(self) -> None:
        with self.assertRaises(ValueError):
            EvaluationStack(0)

    def test_default_capacity(self) -> None:
        self.assertEqual(EvaluationStack().capacity, STACK_CAPACITY)


class EngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ctx = EvaluationContext()

    def test_concrete_scenarios(self) -> None:
        self.assertEqual(self.ctx.run(compile_expression("11+")), 2.0)
        self.assertEqual(self.ctx.run(compile_expression("x2"), 3.0), 9.0)
        self.assertEqual(self.ctx.run(compile_expression("x\\"), 4.0), 0.25)

    def test_binary_operand_order(self) -> None:
        self.assertEqual(self.ctx.run("x1-", 5.0), 4.0)
        self.assertEqual(self.ctx.run("1x/", 4.0), 0.25)
        self.assertEqual(self.ctx.run("x1>*", 3.0), 6.0)

    def test_each_operation(self) -> None:
        x = 0.7
        cases = {
            "0": 0.0,
            "1": 1.0,
            "P": math.pi,
            "x~": -x,
            "x\\": 1.0 / x,
            "x>": x + 1.0,
            "x<": x - 1.0,
            "xS": math.sin(x),
            "xC": math.cos(x),
            "xT": math.tan(x),
            "x2": x * x,
            "xR": math.sqrt(x),
            "xL": math.log(x),
            "xH": x / 2.0,
            "xP+": x + math.pi,
            "xP-": x - math.pi,
            "xP*": x * math.pi,
            "xP/": x / math.pi,
        }
        for expr, expected in cases.items():
            with self.subTest(expr=expr):
                self.assertAlmostEqual(self.ctx.run(expr, x), expected, places=12)

    def test_non_finite_results_are_values(self) -> None:
        self.assertEqual(self.ctx.run("0\\"), math.inf)
        self.assertEqual(self.ctx.run("10/"), math.inf)
        self.assertEqual(self.ctx.run("0L"), -math.inf)
        self.assertTrue(math.isnan(self.ctx.run("1~L")))
        self.assertTrue(math.isnan(self.ctx.run("1~R")))
        self.assertTrue(math.isnan(self.ctx.run("00/")))

    def test_underflow(self) -> None:
        with self.assertRaises(StackUnderflow) as ctx:
            self.ctx.run(compile_expression("+"))
        self.assertEqual(ctx.exception.symbol, "+")
        self.assertEqual(ctx.exception.position, 0)
        self.assertIsInstance(ctx.exception, SymbRuntimeError)

        with self.assertRaises(StackUnderflow):
            self.ctx.run("1+")
        with self.assertRaises(StackUnderflow):
            self.ctx.run("2")
        with self.assertRaises(StackUnderflow):
            self.ctx.run("")

    def test_overflow(self) -> None:
        small = EvaluationContext(capacity=3)
        self.assertEqual(small.run("111++"), 3.0)
        with self.assertRaises(StackOverflow) as ctx:
            small.run("1111+++")
        self.assertEqual(ctx.exception.capacity, 3)
        self.assertEqual(ctx.exception.position, 3)
        self.assertEqual(len(small.stack), 0)

    def test_overflow_at_default_capacity(self) -> None:
        expr = "1" * (STACK_CAPACITY + 1) + "+" * STACK_CAPACITY
        with self.assertRaises(StackOverflow):
            self.ctx.run(expr)
        fits = "1" * STACK_CAPACITY + "+" * (STACK_CAPACITY - 1)
        self.assertEqual(self.ctx.run(fits), float(STACK_CAPACITY))

    def test_residue(self) -> None:
        with self.assertRaises(StackResidueError) as ctx:
            self.ctx.run("11")
        self.assertEqual(ctx.exception.residue, 1)
        self.assertEqual(len(self.ctx.stack), 0)

    def test_context_is_reusable_after_errors(self) -> None:
        with self.assertRaises(StackUnderflow):
            self.ctx.run("1++")
        self.assertEqual(len(self.ctx.stack), 0)
        self.assertEqual(self.ctx.run("11+"), 2.0)

    def test_parameters(self) -> None:
        self.assertEqual(self.ctx.run("abc++"), 0.0)
        self.ctx.set_parameters(2.0, 3.0, 4.0)
        self.assertEqual(self.ctx.run("ab*c+"), 10.0)

    def test_variables_keep_unsupplied_trailing_values(self) -> None:
        self.assertEqual(self.ctx.run("xyz++", 1.0, 2.0, 3.0), 6.0)
        self.assertEqual(self.ctx.run("xyz++", 10.0), 15.0)
        self.assertEqual(self.ctx.run("y"), 2.0)

    def test_too_many_variables(self) -> None:
        with self.assertRaises(TypeError):
            self.ctx.run("x", 1.0, 2.0, 3.0, 4.0)

    def test_accepts_numpy_scalars(self) -> None:
        self.assertEqual(self.ctx.run("x2", np.float32(3.0)), 9.0)
        self.assertIsInstance(self.ctx.run("x2", np.float64(3.0)), float)

    def test_repeated_runs_are_independent(self) -> None:
        compiled = compile_expression("xS")
        first = [self.ctx.run(compiled, v) for v in (0.1, 0.2, 0.3)]
        second = [self.ctx.run(compiled, v) for v in (0.1, 0.2, 0.3)]
        self.assertEqual(first, second)


class DefaultContextTests(unittest.TestCase):
    def test_module_level_run_and_parameters(self) -> None:
        set_parameters(1.5, 0.0, 0.0)
        self.assertEqual(run("a2"), 2.25)
        self.assertEqual(run(compile_expression("x\\"), 4.0), 0.25)
        self.assertIs(default_context(), default_context())

    def test_each_thread_gets_its_own_context(self) -> None:
        seen: list[object] = []
        values: list[float] = []

        def worker() -> None:
            seen.append(default_context())
            values.append(run("a"))

        set_parameters(7.0, 0.0, 0.0)
        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        self.assertIsNot(seen[0], default_context())
        self.assertEqual(values, [0.0])
        self.assertEqual(run("a"), 7.0)

    def test_explicit_context_overrides_default(self) -> None:
        ctx = EvaluationContext()
        set_parameters(5.0, 0.0, 0.0, context=ctx)
        self.assertEqual(run("a", context=ctx), 5.0)


if __name__ == "__main__":
    unittest.main()
