"""
Tests for the SQLite match store.
"""

import os
import shutil
import tempfile
import unittest

import numpy as np

from engine.game import Hydrate, reducer
from engine.state import initial_match
from storage.match_store import MATCH_KEY, MatchStore
from tests.utils_game_states import generate_random_valid_state


class TestMatchStore(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.store = MatchStore(os.path.join(self.temp_dir, "matches.db"))

    def tearDown(self):
        self.store.close()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_load_when_empty(self):
        self.assertIsNone(self.store.load())
        self.assertFalse(self.store.has_saved_match())

    def test_save_and_load_round_trip(self):
        state = generate_random_valid_state(num_moves=6, seed=8)
        self.assertTrue(self.store.save(state))
        self.assertTrue(self.store.has_saved_match())

        raw = self.store.load()
        self.assertEqual(len(raw["players"]), 4)
        restored = reducer(initial_match(), Hydrate(raw))
        np.testing.assert_array_equal(restored.board, state.board)
        self.assertEqual(restored.current, state.current)

    def test_save_overwrites(self):
        first = generate_random_valid_state(num_moves=2, seed=9)
        second = generate_random_valid_state(num_moves=5, seed=9)
        self.store.save(first)
        self.store.save(second)
        self.assertEqual(len(self.store.load()["history"]), len(second.history))

    def test_clear(self):
        self.store.save(generate_random_valid_state(num_moves=1, seed=10))
        self.store.clear()
        self.assertFalse(self.store.has_saved_match())
        self.assertIsNone(self.store.load())

    def test_default_key(self):
        self.assertEqual(self.store.key, MATCH_KEY)
        self.assertEqual(MATCH_KEY, "bloktris.match.v1")

    def test_separate_keys(self):
        other = MatchStore(self.store.path, key="other")
        try:
            self.store.save(generate_random_valid_state(num_moves=1, seed=11))
            self.assertFalse(other.has_saved_match())
        finally:
            other.close()

    def test_unopenable_store_fails_silently(self):
        missing = os.path.join(self.temp_dir, "missing", "nested", "matches.db")
        with self.assertLogs('storage.match_store', level='WARNING'):
            store = MatchStore(missing)
        state = generate_random_valid_state(num_moves=1, seed=12)
        self.assertFalse(store.save(state))
        self.assertIsNone(store.load())
        self.assertFalse(store.has_saved_match())
        store.clear()
        store.close()

    def test_corrupt_value_fails_silently(self):
        self.store._conn.execute(
            "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)", (MATCH_KEY, "{not json", "now")
        )
        self.store._conn.commit()
        with self.assertLogs('storage.match_store', level='WARNING'):
            self.assertIsNone(self.store.load())


if __name__ == '__main__':
    unittest.main()
