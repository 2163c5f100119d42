"""
Bloktris piece catalog with all 21 polyominoes and their rotations/reflections.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np


@dataclass(frozen=True, eq=False)
class Piece:
    """Represents a catalog piece."""
    id: str
    name: str
    shape: np.ndarray  # 2D array, minimal footprint
    size: int  # Number of squares in the piece

    def __post_init__(self):
        """Validate piece after initialization."""
        if self.shape.ndim != 2:
            raise ValueError("Piece shape must be 2D")
        if int(np.sum(self.shape)) != self.size:
            raise ValueError(f"Piece {self.id} shape sum must equal size {self.size}")
        self.shape.setflags(write=False)


def _shape(*rows: str) -> np.ndarray:
    """Build an occupancy matrix from row strings, e.g. ``_shape("10", "11")``."""
    return np.array([[int(ch) for ch in row] for row in rows], dtype=np.uint8)


# Fixed catalog order. Seats start with every id in this order.
PIECES: Dict[str, Piece] = {
    piece.id: piece
    for piece in (
        # 1
        Piece("P1", "Monomino", _shape("1"), 1),
        # 2
        Piece("P2", "Domino", _shape("11"), 2),
        # 3
        Piece("I3", "Tromino I", _shape("111"), 3),
        Piece("L3", "Tromino L", _shape("10", "11"), 3),
        # 4
        Piece("I4", "Tetromino I", _shape("1111"), 4),
        Piece("O4", "Tetromino O", _shape("11", "11"), 4),
        Piece("L4", "Tetromino L", _shape("100", "111"), 4),
        Piece("T4", "Tetromino T", _shape("111", "010"), 4),
        Piece("S4", "Tetromino S", _shape("011", "110"), 4),
        # 5
        Piece("F5", "Pentomino F", _shape("011", "110", "010"), 5),
        Piece("I5", "Pentomino I", _shape("11111"), 5),
        Piece("L5", "Pentomino L", _shape("1000", "1111"), 5),
        Piece("P5", "Pentomino P", _shape("11", "11", "10"), 5),
        Piece("N5", "Pentomino N", _shape("0111", "1100"), 5),
        Piece("T5", "Pentomino T", _shape("111", "010", "010"), 5),
        Piece("U5", "Pentomino U", _shape("101", "111"), 5),
        Piece("V5", "Pentomino V", _shape("100", "100", "111"), 5),
        Piece("W5", "Pentomino W", _shape("100", "110", "011"), 5),
        Piece("X5", "Pentomino X", _shape("010", "111", "010"), 5),
        Piece("Y5", "Pentomino Y", _shape("0100", "1111"), 5),
        Piece("Z5", "Pentomino Z", _shape("001", "111", "100"), 5),
    )
}

ALL_PIECE_IDS: Tuple[str, ...] = tuple(PIECES)
PIECE_SIZES: Dict[str, int] = {piece_id: piece.size for piece_id, piece in PIECES.items()}


def get_piece(piece_id: str) -> Optional[Piece]:
    """Get a piece by its ID, or None for unknown ids."""
    return PIECES.get(piece_id)


def rotate90(shape: np.ndarray) -> np.ndarray:
    """Rotate a matrix 90 degrees clockwise."""
    return np.rot90(shape, k=-1)


def flip_h(shape: np.ndarray) -> np.ndarray:
    """Mirror a matrix left-to-right."""
    return np.fliplr(shape)


def normalize_shape(shape: np.ndarray) -> np.ndarray:
    """
    Trim empty border rows and columns.

    An all-empty matrix normalizes to ``[[0]]``.
    """
    shape = np.asarray(shape, dtype=np.uint8)
    filled = np.argwhere(shape != 0)
    if filled.size == 0:
        return np.zeros((1, 1), dtype=np.uint8)
    (top, left), (bottom, right) = filled.min(axis=0), filled.max(axis=0)
    return np.ascontiguousarray(shape[top:bottom + 1, left:right + 1])


def shape_key(shape: np.ndarray) -> str:
    """Canonical string key: row digits joined, rows separated by ``/``."""
    return "/".join("".join(str(int(v)) for v in row) for row in np.asarray(shape))


def shape_to_offsets(shape: np.ndarray) -> List[Tuple[int, int]]:
    """
    Convert an occupancy matrix to a row-major list of (row, col) offsets.

    Args:
        shape: 2D array with 1s where cells are occupied

    Returns:
        List of (row, col) tuples for occupied cells
    """
    rows, cols = np.nonzero(np.asarray(shape))
    return [(int(r), int(c)) for r, c in zip(rows, cols)]


def orientations_of(piece: Piece) -> List[np.ndarray]:
    """
    Generate every distinct rotation/reflection of a piece.

    For each of the four clockwise rotations the rotated shape is emitted,
    followed by its mirror. Duplicates are dropped on first sight, so the order
    is stable and orientation 0 is always the catalog footprint.

    Returns:
        List of read-only, normalized occupancy matrices (1 to 8 entries)
    """
    unique: Dict[str, np.ndarray] = {}
    current = normalize_shape(piece.shape)
    for turn in range(4):
        rotated = current if turn == 0 else normalize_shape(rotate90(current))
        flipped = normalize_shape(flip_h(rotated))
        for candidate in (rotated, flipped):
            key = shape_key(candidate)
            if key not in unique:
                candidate = np.array(candidate, dtype=np.uint8)
                candidate.setflags(write=False)
                unique[key] = candidate
        current = rotated
    return list(unique.values())


# Global registries, filled once on import
ALL_PIECE_ORIENTATIONS: Dict[str, List[np.ndarray]] = {}
ALL_ORIENTATION_OFFSETS: Dict[str, List[List[Tuple[int, int]]]] = {}
_ORIENTATION_KEYS: Dict[str, Dict[str, int]] = {}


def init_piece_orientations() -> None:
    """Initialize the orientation registries. Safe to call more than once."""
    if ALL_PIECE_ORIENTATIONS:
        return
    for piece_id, piece in PIECES.items():
        orientations = orientations_of(piece)
        ALL_PIECE_ORIENTATIONS[piece_id] = orientations
        ALL_ORIENTATION_OFFSETS[piece_id] = [shape_to_offsets(o) for o in orientations]
        _ORIENTATION_KEYS[piece_id] = {shape_key(o): idx for idx, o in enumerate(orientations)}


def orientation_index(piece_id: str, shape) -> Optional[int]:
    """
    Find which orientation of a piece a matrix is.

    Returns None if the piece is unknown or the matrix is not exactly one of
    the piece's normalized orientations.
    """
    keys = _ORIENTATION_KEYS.get(piece_id)
    if keys is None:
        return None
    try:
        matrix = np.asarray(shape)
    except (TypeError, ValueError):
        return None
    if matrix.ndim != 2 or matrix.size == 0:
        return None
    return keys.get(shape_key((matrix != 0).astype(np.uint8)))


init_piece_orientations()
