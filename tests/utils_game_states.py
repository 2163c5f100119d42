"""
Utility functions for generating test match states.
"""

import random
from dataclasses import replace

import numpy as np

from engine.board import EMPTY, NUM_SEATS, PLAYER_COLORS, make_empty_board
from engine.game import HumanRoll, Place, Start, reducer
from engine.move_generator import get_legal_moves
from engine.state import Match, PlayerState, build_players, initial_match


def started_match(seed: str = "T1") -> Match:
    """Four-human match with the turn order already rolled."""
    state = reducer(initial_match(), Start(4, seed=seed))
    for _ in range(NUM_SEATS):
        state = reducer(state, HumanRoll())
    return state


def seats(**overrides) -> tuple:
    """Four fresh seats; keyword ``seat<N>`` replaces fields on seat N."""
    players = list(build_players(4))
    for key, fields in overrides.items():
        seat = int(key.replace("seat", ""))
        players[seat] = replace(players[seat], **fields)
    return tuple(players)


def board_with(cells, size: int = 20) -> np.ndarray:
    """Board with ``{(row, col): seat}`` filled in."""
    board = make_empty_board(size)
    for (row, col), seat in cells.items():
        board[row, col] = seat
    return board


def player(seat: int, **fields) -> PlayerState:
    return PlayerState(id=seat, color=PLAYER_COLORS[seat], **fields)


def generate_random_valid_state(num_moves: int, seed: int = 0) -> Match:
    """
    Play random legal moves through the reducer.

    Args:
        num_moves: Number of placements to make
        seed: Random seed for reproducibility

    Returns:
        The resulting match (may end early if the game is over)
    """
    rng = random.Random(seed)
    state = started_match(seed=f"random-{seed}")

    for _ in range(num_moves):
        if state.is_over:
            break
        seat = state.current
        moves = get_legal_moves(state.board, state.players[seat])
        if not moves:
            break
        move = rng.choice(moves)
        state = reducer(state, Place(seat, move.piece_id, move.shape, move.anchor))

    return state


def filled_cells(board: np.ndarray) -> int:
    return int(np.sum(board != EMPTY))
