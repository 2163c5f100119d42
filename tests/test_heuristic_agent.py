"""
Tests for the heuristic bot search.
"""

import unittest
from dataclasses import replace
from unittest.mock import patch

from engine.board import Position, placement_cells
from engine.game import Place, reducer
from engine.move_generator import Move, is_legal_move
from agents.heuristic_agent import HeuristicAgent, bot_move
from tests.utils_game_states import generate_random_valid_state, started_match


class TestHeuristicAgent(unittest.TestCase):
    """Test bot placement selection."""

    def setUp(self):
        self.agent = HeuristicAgent()
        self.state = started_match()

    def test_first_move_covers_home_corner(self):
        placement = self.agent.select_action(self.state, 0)
        self.assertIsNotNone(placement)
        self.assertIn(Position(0, 0), placement_cells(placement.shape, placement.anchor))

    def test_selection_is_deterministic(self):
        state = generate_random_valid_state(num_moves=6, seed=4)
        first = bot_move(state, state.current)
        second = bot_move(state, state.current)
        self.assertEqual((first.piece_id, first.orientation, first.anchor, first.score),
                         (second.piece_id, second.orientation, second.anchor, second.score))

    def test_selected_move_is_accepted_by_reducer(self):
        state = generate_random_valid_state(num_moves=5, seed=6)
        seat = state.current
        placement = bot_move(state, seat)
        self.assertTrue(is_legal_move(state.board, state.players[seat], placement.shape, placement.anchor))
        after = reducer(state, Place(seat, placement.piece_id, placement.shape, placement.anchor))
        self.assertIsNot(after, state)

    def test_prefers_large_pieces_first_in_order(self):
        """With only the size term, the first five-square piece wins ties."""
        self.agent.set_weights({"mobility": 0.0, "outward": 0.0, "piece_size": 1.0})
        placement = self.agent.select_action(self.state, 0)
        self.assertEqual(placement.piece_id, "F5")
        self.assertEqual(placement.score, 5.0)

    def test_score_formula(self):
        # P1 at the corner: one empty diagonal neighbour, outward 0, size 1
        grid = self.state.board.tolist()
        score = self.agent._evaluate_move(grid, 20, Move("P1", 0, Position(0, 0)))
        self.assertEqual(score, 10 * 1 + 0 + 3 * 1)

    def test_outward_uses_raw_coordinates(self):
        grid = self.state.board.tolist()
        score = self.agent._evaluate_move(grid, 20, Move("P1", 0, Position(19, 19)))
        self.assertEqual(score, 10 * 1 + 38 + 3)

    def test_mobility_counts_per_cell(self):
        # Horizontal domino in open space: both cells see four empty diagonals
        grid = self.state.board.tolist()
        self.assertEqual(HeuristicAgent._mobility(grid, 20, Move("P2", 0, Position(5, 5))), 8)

    def test_no_pieces_returns_none(self):
        players = tuple(replace(p, remaining=()) if p.id == 0 else p for p in self.state.players)
        state = replace(self.state, players=players)
        self.assertIsNone(bot_move(state, 0))

    def test_no_legal_moves_returns_none(self):
        with patch('agents.heuristic_agent.iter_legal_moves', return_value=iter([])):
            self.assertIsNone(self.agent.select_action(self.state, 0))

    def test_invalid_seat_returns_none(self):
        self.assertIsNone(self.agent.select_action(self.state, 4))

    def test_get_action_info(self):
        info = self.agent.get_action_info()
        self.assertEqual(info["type"], "heuristic")
        self.assertEqual(info["weights"], {"mobility": 10.0, "outward": 1.0, "piece_size": 3.0})


if __name__ == '__main__':
    unittest.main()
