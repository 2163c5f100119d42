"""
Legality engine and legal move generation for Bloktris.

All functions are pure: they read a board and seat state and never mutate them.
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

import numpy as np

from .board import CORNER_DIRS, EDGE_DIRS, EMPTY, Position, get_frontier, home_corner
from .pieces import ALL_ORIENTATION_OFFSETS, ALL_PIECE_ORIENTATIONS, shape_to_offsets
from .state import PlayerState

logger = logging.getLogger(__name__)

# Debug flag for move generation timing (controlled via environment variable)
MOVEGEN_DEBUG = bool(os.getenv("BLOKTRIS_MOVEGEN_DEBUG", ""))


@dataclass(frozen=True)
class Move:
    """A legal placement: piece, orientation index and top-left anchor."""
    piece_id: str
    orientation: int  # Index into ALL_PIECE_ORIENTATIONS[piece_id]
    anchor: Position

    @property
    def shape(self) -> np.ndarray:
        return ALL_PIECE_ORIENTATIONS[self.piece_id][self.orientation]

    def get_positions(self) -> List[Position]:
        """Board positions this move would occupy."""
        return [
            Position(self.anchor.row + r, self.anchor.col + c)
            for r, c in ALL_ORIENTATION_OFFSETS[self.piece_id][self.orientation]
        ]

    def __str__(self):
        return f"Move(piece_id={self.piece_id}, orientation={self.orientation}, anchor=({self.anchor.row}, {self.anchor.col}))"


def is_inside_board(shape: np.ndarray, anchor: Position, size: int) -> bool:
    """Every filled cell of the shape, translated by anchor, lies on the board."""
    for r, c in shape_to_offsets(shape):
        row, col = anchor.row + r, anchor.col + c
        if row < 0 or row >= size or col < 0 or col >= size:
            return False
    return True


def would_overlap(board: np.ndarray, shape: np.ndarray, anchor: Position) -> bool:
    """Some filled cell lands on an occupied (or off-board) cell."""
    size = board.shape[0]
    for r, c in shape_to_offsets(shape):
        row, col = anchor.row + r, anchor.col + c
        if row < 0 or row >= size or col < 0 or col >= size:
            return True
        if board[row, col] != EMPTY:
            return True
    return False


def _touches(board: np.ndarray, seat: int, shape: np.ndarray, anchor: Position,
             directions: Sequence[Tuple[int, int]]) -> bool:
    size = board.shape[0]
    for r, c in shape_to_offsets(shape):
        row, col = anchor.row + r, anchor.col + c
        for dr, dc in directions:
            nr, nc = row + dr, col + dc
            if 0 <= nr < size and 0 <= nc < size and board[nr, nc] == seat:
                return True
    return False


def touches_side_same(board: np.ndarray, seat: int, shape: np.ndarray, anchor: Position) -> bool:
    """Some filled cell is edge-adjacent to a cell the seat already owns."""
    return _touches(board, seat, shape, anchor, EDGE_DIRS)


def touches_corner_same(board: np.ndarray, seat: int, shape: np.ndarray, anchor: Position) -> bool:
    """Some filled cell is diagonally adjacent to a cell the seat already owns."""
    return _touches(board, seat, shape, anchor, CORNER_DIRS)


def covers_corner(shape: np.ndarray, anchor: Position, corner: Position) -> bool:
    for r, c in shape_to_offsets(shape):
        if anchor.row + r == corner.row and anchor.col + c == corner.col:
            return True
    return False


def _placement_is_legal(grid, size: int, seat: int, has_played: bool,
                        offsets: Sequence[Tuple[int, int]],
                        anchor_row: int, anchor_col: int) -> bool:
    """
    Inline legality check over precomputed offsets and a nested-list grid.

    Mirrors ``is_legal_move`` without building Position objects; used by the
    enumerators, which run it tens of thousands of times per search.
    """
    if not offsets:
        return False

    # Bounds and overlap
    for r, c in offsets:
        row, col = anchor_row + r, anchor_col + c
        if row < 0 or row >= size or col < 0 or col >= size:
            return False
        if grid[row][col] != EMPTY:
            return False

    corner = home_corner(seat, size)
    covers = False
    has_corner_connection = False
    for r, c in offsets:
        row, col = anchor_row + r, anchor_col + c
        for dr, dc in EDGE_DIRS:
            nr, nc = row + dr, col + dc
            if 0 <= nr < size and 0 <= nc < size and grid[nr][nc] == seat:
                return False  # Edge adjacency with own color is never allowed
        if not has_corner_connection:
            for dr, dc in CORNER_DIRS:
                nr, nc = row + dr, col + dc
                if 0 <= nr < size and 0 <= nc < size and grid[nr][nc] == seat:
                    has_corner_connection = True
                    break
        if row == corner.row and col == corner.col:
            covers = True

    if not has_played:
        return covers
    return has_corner_connection


def is_legal_move(board: np.ndarray, player: PlayerState, shape, anchor: Position) -> bool:
    """
    Check whether a seat may place an oriented shape with its top-left at anchor.

    Legal iff every filled cell is on the board, no filled cell overlaps an
    occupied cell, no filled cell edge-touches the seat's own color, and either
    the shape covers the seat's home corner (first placement) or some filled
    cell corner-touches the seat's own color (later placements).

    Args:
        board: Current board
        player: Seat attempting the placement
        shape: 2D occupancy matrix (1 = filled)
        anchor: Board position of the matrix's top-left cell

    Returns:
        True if the placement is legal
    """
    matrix = np.asarray(shape)
    if matrix.ndim != 2:
        return False
    return _placement_is_legal(
        board, board.shape[0], player.id, player.has_played,
        shape_to_offsets(matrix), anchor.row, anchor.col,
    )


def has_any_legal_move(players: Sequence[PlayerState], seat: int, board: np.ndarray) -> bool:
    """
    Check if a seat has at least one legal placement.

    Candidate anchor cells are the home corner before the first placement and
    the seat's frontier afterwards. Every filled cell of every orientation is
    aligned onto each candidate cell; the search stops at the first hit.
    """
    player = players[seat]
    if not player.remaining:
        return False

    anchors = [home_corner(seat, board.shape[0])] if not player.has_played else get_frontier(board, seat)
    if not anchors:
        return False

    grid = board.tolist()
    size = board.shape[0]
    for piece_id in player.remaining:
        for offsets in ALL_ORIENTATION_OFFSETS.get(piece_id, ()):
            for cell in anchors:
                for r, c in offsets:
                    if _placement_is_legal(grid, size, seat, player.has_played,
                                           offsets, cell.row - r, cell.col - c):
                        return True
    return False


def is_game_over(players: Sequence[PlayerState], board: np.ndarray) -> bool:
    """
    The match is over when no active seat has a legal move.

    Inactive seats are never re-examined.
    """
    return not any(
        p.active and has_any_legal_move(players, p.id, board)
        for p in players
    )


def iter_legal_moves(board: np.ndarray, player: PlayerState) -> Iterator[Move]:
    """
    Yield every legal move for a seat in the fixed search order.

    Order: the seat's remaining-piece order, then orientation generator order,
    then anchors row-major from the top-left.
    """
    grid = board.tolist()
    size = board.shape[0]
    for piece_id in player.remaining:
        orientations = ALL_PIECE_ORIENTATIONS.get(piece_id, ())
        for orientation_idx, shape in enumerate(orientations):
            offsets = ALL_ORIENTATION_OFFSETS[piece_id][orientation_idx]
            height, width = shape.shape
            for row in range(size - height + 1):
                for col in range(size - width + 1):
                    if _placement_is_legal(grid, size, player.id, player.has_played, offsets, row, col):
                        yield Move(piece_id, orientation_idx, Position(row, col))


def get_legal_moves(board: np.ndarray, player: PlayerState) -> List[Move]:
    """
    Get all legal moves for a seat on the current board.

    Args:
        board: Current board
        player: Seat to generate moves for

    Returns:
        List of legal moves, in search order
    """
    start = time.perf_counter()
    legal_moves = list(iter_legal_moves(board, player))
    elapsed_ms = (time.perf_counter() - start) * 1000.0

    if MOVEGEN_DEBUG:
        logger.info(f"MoveGen: seat={player.id}, legal_moves={len(legal_moves)}, elapsed_ms={elapsed_ms:.2f}")
    logger.debug(f"Legal move generation: {len(legal_moves)} moves in {elapsed_ms:.2f}ms for seat={player.id}, pieces_checked={len(player.remaining)}")
    return legal_moves
