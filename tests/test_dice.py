"""
Tests for seeded dice and turn-order resolution.
"""

import itertools
import re
import unittest
from datetime import datetime

from engine.dice import (
    bot_roll_key, human_roll_key, make_match_id, mulberry32, resolve_turn_order,
    roll_die, seeded_die, str_to_seed, tie_break_key,
)
from engine.game import HumanRoll, Start, reducer
from engine.state import initial_match


class TestSeededDie(unittest.TestCase):

    def test_fnv1a_known_values(self):
        self.assertEqual(str_to_seed(""), 2166136261)
        self.assertEqual(str_to_seed("a"), 0xE40C292C)

    def test_lone_surrogate_hashes_as_code_unit(self):
        expected = ((2166136261 ^ 0xD800) * 16777619) & 0xFFFFFFFF
        self.assertEqual(str_to_seed("\ud800"), expected)
        self.assertIn(roll_die(human_roll_key("\ud800", 0)), range(1, 7))

    def test_surrogate_seed_resolves_turn_order(self):
        state = reducer(initial_match(), Start(4, seed="\udfff-x"))
        for _ in range(4):
            state = reducer(state, HumanRoll())
        self.assertTrue(state.meta.order_resolved)
        self.assertEqual(sorted(state.meta.seat_order), [0, 1, 2, 3])

    def test_same_key_same_sequence(self):
        first = list(itertools.islice(seeded_die("T1-H-0"), 20))
        second = list(itertools.islice(seeded_die("T1-H-0"), 20))
        self.assertEqual(first, second)

    def test_values_in_range(self):
        for seat in range(4):
            for seed in ("T1", "abc", "20260101-ZZZZ", ""):
                value = roll_die(human_roll_key(seed, seat))
                self.assertGreaterEqual(value, 1)
                self.assertLessEqual(value, 6)

    def test_generator_values_in_unit_interval(self):
        for value in itertools.islice(mulberry32(12345), 200):
            self.assertGreaterEqual(value, 0.0)
            self.assertLess(value, 1.0)

    def test_all_faces_appear(self):
        faces = set(itertools.islice(seeded_die("faces"), 300))
        self.assertEqual(faces, {1, 2, 3, 4, 5, 6})

    def test_generators_do_not_share_state(self):
        a = seeded_die("x")
        next(a)
        next(a)
        self.assertEqual(next(seeded_die("x")), roll_die("x"))

    def test_role_keys(self):
        self.assertEqual(human_roll_key("T1", 2), "T1-H-2")
        self.assertEqual(bot_roll_key("T1", 3), "T1-B-3")
        self.assertEqual(tie_break_key("T1", 1, 4), "T1-TB-1-4")

    def test_match_id_format(self):
        match_id = make_match_id(datetime(2026, 1, 18, 12, 0, 0))
        self.assertRegex(match_id, re.compile(r"^20260118-[A-Z0-9]{4}$"))


class TestTurnOrder(unittest.TestCase):

    def test_sorted_by_value_descending(self):
        order = resolve_turn_order([(0, 2), (1, 6), (2, 4), (3, 1)], "S")
        self.assertEqual(order.order, (1, 2, 0, 3))
        self.assertEqual(order.resolved, ((1, 6), (2, 4), (0, 2), (3, 1)))
        self.assertEqual(order.iterations, 0)
        self.assertEqual(order.tie_breaks, {})

    def test_tied_group_rerolls(self):
        rerolls = {"S-TB-0-1": 4, "S-TB-1-1": 6}
        order = resolve_turn_order([(0, 5), (1, 5), (2, 2), (3, 1)], "S", die=rerolls.__getitem__)
        self.assertEqual(order.order, (1, 0, 2, 3))
        self.assertEqual(order.tie_breaks, {0: (5, 4), 1: (5, 6)})
        self.assertEqual(order.iterations, 1)

    def test_every_tied_group_rerolls(self):
        rerolls = {"S-TB-0-1": 1, "S-TB-1-1": 2, "S-TB-2-1": 5, "S-TB-3-1": 6}
        order = resolve_turn_order([(0, 3), (1, 3), (2, 4), (3, 4)], "S", die=rerolls.__getitem__)
        self.assertEqual(order.order, (3, 2, 1, 0))
        self.assertEqual(set(order.tie_breaks), {0, 1, 2, 3})

    def test_tie_break_terminates_with_constant_die(self):
        """Permanent collisions stop after ten rounds and fall back to seat order."""
        calls = []

        def constant_die(key):
            calls.append(key)
            return 3

        order = resolve_turn_order([(seat, 3) for seat in range(4)], "S", die=constant_die)
        self.assertEqual(order.order, (0, 1, 2, 3))
        self.assertEqual(order.iterations, 10)
        self.assertEqual(len(calls), 40)
        self.assertEqual(order.tie_breaks[2], (3, 3))

    def test_seeded_resolution_is_total_order(self):
        for seed in ("T1", "T2", "collide", "x"):
            order = resolve_turn_order([(seat, 4) for seat in range(4)], seed)
            self.assertEqual(sorted(order.order), [0, 1, 2, 3])
            values = [value for _, value in order.resolved]
            self.assertEqual(values, sorted(values, reverse=True))

    def test_deterministic(self):
        rolls = [(0, 6), (1, 6), (2, 6), (3, 1)]
        self.assertEqual(resolve_turn_order(rolls, "R"), resolve_turn_order(rolls, "R"))


if __name__ == '__main__':
    unittest.main()
