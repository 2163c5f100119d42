"""
Bloktris game engine package.

This package contains the core rules of the game, including:
- Board geometry and the piece catalog with orientations
- The legality engine and legal move generation
- Deterministic dice and turn-order resolution
- Move application and the match state machine
"""

from .board import BOARD_SIZE, EMPTY, PlayerColor, Position
from .pieces import ALL_PIECE_IDS, ALL_PIECE_ORIENTATIONS, PIECES, Piece, orientations_of
from .state import Match, MatchMeta, PlacedPiece, PlayerState, initial_match
from .move_generator import Move, get_legal_moves, has_any_legal_move, is_game_over, is_legal_move
from .dice import resolve_turn_order, seeded_die
from .game import (
    BotRoll, GameResult, Hydrate, HumanRoll, MarkRollShown, Pass, Place, Start,
    apply_move, game_result, reducer,
)

__all__ = [
    'BOARD_SIZE', 'EMPTY', 'PlayerColor', 'Position',
    'ALL_PIECE_IDS', 'ALL_PIECE_ORIENTATIONS', 'PIECES', 'Piece', 'orientations_of',
    'Match', 'MatchMeta', 'PlacedPiece', 'PlayerState', 'initial_match',
    'Move', 'get_legal_moves', 'has_any_legal_move', 'is_game_over', 'is_legal_move',
    'resolve_turn_order', 'seeded_die',
    'Start', 'HumanRoll', 'BotRoll', 'Place', 'Pass', 'MarkRollShown', 'Hydrate',
    'GameResult', 'apply_move', 'game_result', 'reducer',
]
