"""
Board geometry for the 20x20 Bloktris grid.

The board is a numpy int8 matrix where:
- EMPTY (-1) represents an unoccupied cell
- 0-3 represent the seat that filled the cell
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple

import numpy as np

BOARD_SIZE = 20
NUM_SEATS = 4
EMPTY = -1

EDGE_DIRS: Tuple[Tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
CORNER_DIRS: Tuple[Tuple[int, int], ...] = ((-1, -1), (-1, 1), (1, -1), (1, 1))


class PlayerColor(str, Enum):
    """Seat colors in slot order; slot 0 plays first."""
    BLUE = "blue"
    YELLOW = "yellow"
    RED = "red"
    GREEN = "green"


PLAYER_COLORS: Tuple[PlayerColor, ...] = tuple(PlayerColor)


@dataclass(frozen=True)
class Position:
    """A board coordinate. ``row`` grows downwards, ``col`` to the right."""
    row: int
    col: int

    def offset(self, d_row: int, d_col: int) -> "Position":
        return Position(self.row + d_row, self.col + d_col)


def home_corner(seat: int, size: int = BOARD_SIZE) -> Position:
    """
    Get the board corner a seat's first placement must cover.

    Seat 0 is top-left, then clockwise: top-right, bottom-right, bottom-left.
    """
    corners = (
        Position(0, 0),
        Position(0, size - 1),
        Position(size - 1, size - 1),
        Position(size - 1, 0),
    )
    return corners[seat % NUM_SEATS]


def make_empty_board(size: int = BOARD_SIZE) -> np.ndarray:
    """Create a writeable board with every cell unoccupied."""
    return np.full((size, size), EMPTY, dtype=np.int8)


def freeze_board(board: np.ndarray) -> np.ndarray:
    """Mark a board read-only so snapshots cannot be mutated in place."""
    board.setflags(write=False)
    return board


def is_valid_position(row: int, col: int, size: int = BOARD_SIZE) -> bool:
    """Check if a coordinate is within board bounds."""
    return 0 <= row < size and 0 <= col < size


def placement_cells(shape: np.ndarray, anchor: Position) -> List[Position]:
    """
    Get the board positions a shape would fill when its top-left is at anchor.

    Args:
        shape: 2D occupancy matrix, 1 = filled
        anchor: Board position of the shape's top-left bounding-box cell

    Returns:
        List of positions, row-major
    """
    rows, cols = np.nonzero(np.asarray(shape))
    return [Position(anchor.row + int(r), anchor.col + int(c)) for r, c in zip(rows, cols)]


def board_has_any_tiles(board: np.ndarray) -> bool:
    return bool(np.any(board != EMPTY))


def board_from_history(history: Iterable, size: int = BOARD_SIZE) -> np.ndarray:
    """
    Rebuild a board by replaying placement records onto an empty grid.

    Each record needs ``player``, ``anchor`` and ``shape``. Cells that would
    fall off the board are skipped.
    """
    board = make_empty_board(size)
    for record in history:
        for pos in placement_cells(record.shape, record.anchor):
            if is_valid_position(pos.row, pos.col, size):
                board[pos.row, pos.col] = record.player
    return board


def get_frontier(board: np.ndarray, seat: int) -> List[Position]:
    """
    Get the empty cells where a seat could extend from.

    A frontier cell is empty, diagonally adjacent to at least one of the seat's
    cells and not edge-adjacent to any of them.
    """
    size = board.shape[0]
    grid = board.tolist()
    frontier = []
    for r in range(size):
        row = grid[r]
        for c in range(size):
            if row[c] != EMPTY:
                continue
            has_diag = False
            for dr, dc in CORNER_DIRS:
                nr, nc = r + dr, c + dc
                if 0 <= nr < size and 0 <= nc < size and grid[nr][nc] == seat:
                    has_diag = True
                    break
            if not has_diag:
                continue
            side_touch = False
            for dr, dc in EDGE_DIRS:
                nr, nc = r + dr, c + dc
                if 0 <= nr < size and 0 <= nc < size and grid[nr][nc] == seat:
                    side_touch = True
                    break
            if not side_touch:
                frontier.append(Position(r, c))
    return frontier


def render_board(board: np.ndarray) -> str:
    """String representation of the board, ``.`` for empty cells."""
    lines = []
    for row in board.tolist():
        lines.append("".join("." if value == EMPTY else str(value) for value in row))
    return "\n".join(lines)
