"""
Heuristic agent for automated Bloktris seats.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from engine.board import CORNER_DIRS, EMPTY, Position
from engine.move_generator import MOVEGEN_DEBUG, Move, iter_legal_moves
from engine.pieces import ALL_ORIENTATION_OFFSETS, PIECE_SIZES
from engine.state import Match

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class BotPlacement:
    """The placement chosen for an automated seat."""
    piece_id: str
    orientation: int
    shape: np.ndarray
    anchor: Position
    score: float


class HeuristicAgent:
    """
    Exhaustive scoring search over every legal placement.

    Each candidate scores ``mobility * 10 + outward + size * 3``:
    - mobility: empty cells diagonal to the cells the piece would fill,
      counted per cell (keeps future options open)
    - outward: the anchor's row + col (spreads away from the origin)
    - size: the piece's square count (sheds large pieces first)

    The first candidate with the strictly highest score wins, so the result is
    fully determined by the board and the enumeration order.
    """

    def __init__(self):
        self.mobility_weight = 10.0
        self.outward_weight = 1.0
        self.piece_size_weight = 3.0

    def select_action(self, match: Match, seat: int) -> Optional[BotPlacement]:
        """
        Choose a placement for a seat.

        Args:
            match: Current match snapshot
            seat: Seat to move

        Returns:
            The best placement, or None if the seat has no legal placement
            (the caller should pass)
        """
        if not 0 <= seat < len(match.players):
            return None

        start = time.perf_counter()
        grid = match.board.tolist()
        size = match.board.shape[0]
        best: Optional[Move] = None
        best_score = 0.0
        candidates = 0

        for move in iter_legal_moves(match.board, match.players[seat]):
            candidates += 1
            score = self._evaluate_move(grid, size, move)
            if best is None or score > best_score:
                best, best_score = move, score

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        if MOVEGEN_DEBUG:
            logger.info(f"BotSearch: seat={seat}, candidates={candidates}, elapsed_ms={elapsed_ms:.2f}")

        if best is None:
            logger.debug(f"Bot seat {seat} has no legal placement")
            return None
        logger.debug(f"Bot seat {seat} chose {best} score={best_score} from {candidates} candidates")
        return BotPlacement(
            piece_id=best.piece_id,
            orientation=best.orientation,
            shape=best.shape,
            anchor=best.anchor,
            score=best_score,
        )

    def _evaluate_move(self, grid, size: int, move: Move) -> float:
        mobility = self._mobility(grid, size, move)
        outward = move.anchor.row + move.anchor.col
        return (self.mobility_weight * mobility
                + self.outward_weight * outward
                + self.piece_size_weight * PIECE_SIZES[move.piece_id])

    @staticmethod
    def _mobility(grid, size: int, move: Move) -> int:
        """Count empty diagonal neighbours of each cell the move would fill."""
        count = 0
        for r, c in ALL_ORIENTATION_OFFSETS[move.piece_id][move.orientation]:
            row, col = move.anchor.row + r, move.anchor.col + c
            for dr, dc in CORNER_DIRS:
                nr, nc = row + dr, col + dc
                if 0 <= nr < size and 0 <= nc < size and grid[nr][nc] == EMPTY:
                    count += 1
        return count

    def get_action_info(self) -> Dict[str, Any]:
        """Get information about the agent."""
        return {
            "name": "HeuristicAgent",
            "type": "heuristic",
            "description": "Exhaustive search scoring mobility, outward spread and piece size",
            "weights": {
                "mobility": self.mobility_weight,
                "outward": self.outward_weight,
                "piece_size": self.piece_size_weight,
            },
        }

    def set_weights(self, weights: Dict[str, float]):
        """
        Set heuristic weights.

        Args:
            weights: Dictionary of weight names and values
        """
        if "mobility" in weights:
            self.mobility_weight = weights["mobility"]
        if "outward" in weights:
            self.outward_weight = weights["outward"]
        if "piece_size" in weights:
            self.piece_size_weight = weights["piece_size"]


def bot_move(match: Match, seat: int) -> Optional[BotPlacement]:
    """Choose a placement for an automated seat with the default weights."""
    return HeuristicAgent().select_action(match, seat)
