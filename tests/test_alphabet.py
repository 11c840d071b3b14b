from __future__ import annotations

import unittest

from symb_jax.alphabet import (
    ALPHABET,
    DESCRIPTIONS,
    FULL_POOLS,
    SEARCH_POOLS,
    Arity,
    OpKind,
    SymbolPools,
    arity_of,
    is_well_formed,
    op_kind,
    stack_effect,
    stack_profile,
)
from symb_jax.errors import SymbError, UnknownSymbolError


class AlphabetTests(unittest.TestCase):
    def test_full_pools_partition_the_alphabet(self) -> None:
        pools = (FULL_POOLS.nullary, FULL_POOLS.unary, FULL_POOLS.binary)
        union = set().union(*pools)
        self.assertEqual(union, set(ALPHABET))
        self.assertEqual(sum(len(pool) for pool in pools), len(ALPHABET))
        self.assertEqual(set(FULL_POOLS.nullary), set("01Pabcxyz"))
        self.assertEqual(set(FULL_POOLS.unary), set("~\\><SCT2RLH"))
        self.assertEqual(set(FULL_POOLS.binary), set("+-*/"))

    def test_every_kind_has_a_symbol_arity_and_description(self) -> None:
        for kind in OpKind:
            with self.subTest(kind=kind.name):
                self.assertEqual(len(kind.symbol), 1)
                self.assertIs(op_kind(kind.symbol), kind)
                self.assertIn(kind.arity, tuple(Arity))
                self.assertIn(kind, DESCRIPTIONS)
                self.assertIn(kind.symbol, FULL_POOLS.pool(kind.arity))

    def test_arity_of_known_symbols(self) -> None:
        self.assertEqual(arity_of("x"), Arity.NULLARY)
        self.assertEqual(arity_of("P"), Arity.NULLARY)
        self.assertEqual(arity_of("2"), Arity.UNARY)
        self.assertEqual(arity_of("\\"), Arity.UNARY)
        self.assertEqual(arity_of("/"), Arity.BINARY)

    def test_unknown_symbol_is_rejected(self) -> None:
        with self.assertRaises(UnknownSymbolError) as ctx:
            arity_of("q")
        self.assertEqual(ctx.exception.symbol, "q")
        self.assertIsInstance(ctx.exception, SymbError)

    def test_stack_effect_per_arity(self) -> None:
        self.assertEqual(stack_effect(Arity.NULLARY), 1)
        self.assertEqual(stack_effect(Arity.UNARY), 0)
        self.assertEqual(stack_effect(Arity.BINARY), -1)

    def test_stack_profile_and_well_formedness(self) -> None:
        self.assertEqual(stack_profile("11+"), (1, 2, 1))
        self.assertEqual(stack_profile("x2"), (1, 1))
        self.assertEqual(stack_profile("+"), (-1,))

        self.assertTrue(is_well_formed("11+"))
        self.assertTrue(is_well_formed("x"))
        self.assertTrue(is_well_formed("xS1+L"))
        self.assertFalse(is_well_formed(""))
        self.assertFalse(is_well_formed("+"))
        self.assertFalse(is_well_formed("11"))
        self.assertFalse(is_well_formed("2x"))
        self.assertFalse(is_well_formed("1+1"))

    def test_stack_profile_reports_unknown_symbol_position(self) -> None:
        with self.assertRaises(UnknownSymbolError) as ctx:
            stack_profile("x1q")
        self.assertEqual(ctx.exception.position, 2)

    def test_search_pools_match_restricted_draws(self) -> None:
        self.assertEqual(SEARCH_POOLS.nullary, ("1", "x", "P"))
        self.assertNotIn("T", SEARCH_POOLS.unary)
        self.assertEqual(len(SEARCH_POOLS.unary), 10)
        self.assertEqual(set(SEARCH_POOLS.binary), set("+-*/"))

    def test_symbol_pools_validation(self) -> None:
        with self.assertRaises(ValueError):
            SymbolPools((), ("~",), ("+",))
        with self.assertRaises(ValueError):
            SymbolPools(("x",), ("+",), ("+",))
        with self.assertRaises(ValueError):
            SymbolPools(("x", "q"), ("~",), ("+",))
        with self.assertRaises(ValueError):
            SymbolPools(("x", "x"), ("~",), ("+",))

    def test_symbol_pools_from_strings(self) -> None:
        pools = SymbolPools.from_strings("x", "S", "*")
        self.assertEqual(pools.pool(Arity.NULLARY), ("x",))
        self.assertEqual(pools.pool(Arity.UNARY), ("S",))
        self.assertEqual(pools.pool(Arity.BINARY), ("*",))


if __name__ == "__main__":
    unittest.main()
