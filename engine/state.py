"""
Match entities: seats, placement records, roll metadata and the match snapshot.

Every entity is a frozen dataclass. Transitions build new instances with
``dataclasses.replace`` and the board array is kept read-only.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from .board import NUM_SEATS, PLAYER_COLORS, PlayerColor, Position, freeze_board, make_empty_board
from .pieces import ALL_PIECE_IDS, PIECE_SIZES


@dataclass(frozen=True)
class PlayerState:
    """
    State of one seat.

    Attributes:
        id: Seat slot 0-3
        color: Seat color
        remaining: Catalog ids not yet placed, in catalog order
        has_played: True after the seat's first placement
        is_bot: True for automated seats
        score: Sum of remaining piece sizes (lower is better)
        active: False once the seat has no legal move; never reactivates
    """
    id: int
    color: PlayerColor
    remaining: Tuple[str, ...] = ALL_PIECE_IDS
    has_played: bool = False
    is_bot: bool = False
    score: int = 0
    active: bool = True


@dataclass(frozen=True, eq=False)
class PlacedPiece:
    """A placement history record."""
    piece_id: str
    player: int
    anchor: Position
    shape: np.ndarray


@dataclass(frozen=True)
class RollEntry:
    """Die value for a seat; ``value`` is None until rolled."""
    seat: int
    value: Optional[int] = None


@dataclass(frozen=True)
class MatchMeta:
    """Match metadata and turn-order resolution progress."""
    match_id: str = ""
    rng_seed: str = ""
    roll_pending: bool = False
    roll_queue: Tuple[int, ...] = ()
    bot_queue: Tuple[int, ...] = ()
    rolls: Tuple[RollEntry, ...] = ()
    seat_order: Tuple[int, ...] = ()  # pre-roll seat id for each final slot
    last_roll: Optional[Tuple[Tuple[PlayerColor, int], ...]] = None
    tie_breaks: Dict[int, Tuple[int, int]] = field(default_factory=dict)
    showed_roll_once: bool = False
    order_resolved: bool = False
    hydrated: bool = False
    reveal_bots: bool = True


@dataclass(frozen=True, eq=False)
class Match:
    """
    Immutable match snapshot.

    ``winner_ids`` is None while the match is running and holds every seat
    tied for the lowest score once it is over.
    """
    board: np.ndarray
    players: Tuple[PlayerState, ...]
    current: int = 0
    history: Tuple[PlacedPiece, ...] = ()
    winner_ids: Optional[Tuple[int, ...]] = None
    meta: MatchMeta = field(default_factory=MatchMeta)

    def __post_init__(self):
        freeze_board(self.board)

    @property
    def is_over(self) -> bool:
        return self.winner_ids is not None

    @property
    def current_player(self) -> Optional[PlayerState]:
        if 0 <= self.current < len(self.players):
            return self.players[self.current]
        return None


def score_for_remaining(remaining: Iterable[str]) -> int:
    """Sum of the sizes of unplaced pieces."""
    return sum(PIECE_SIZES[piece_id] for piece_id in remaining)


def build_players(human_count: int) -> Tuple[PlayerState, ...]:
    """
    Build four fresh seats with full catalogs.

    With one human, seat 0 is human and seats 1-3 are bots; with four humans
    every seat is human. Colors are placeholders until the turn order is rolled.
    """
    return tuple(
        PlayerState(
            id=seat,
            color=PLAYER_COLORS[seat],
            remaining=ALL_PIECE_IDS,
            is_bot=human_count == 1 and seat != 0,
            score=score_for_remaining(ALL_PIECE_IDS),
        )
        for seat in range(NUM_SEATS)
    )


def winners(players: Iterable[PlayerState]) -> Tuple[int, ...]:
    """All seats whose score equals the minimum score."""
    players = tuple(players)
    best = min(p.score for p in players)
    return tuple(p.id for p in players if p.score == best)


def initial_match() -> Match:
    """The pre-start state: empty board, no seats."""
    return Match(board=make_empty_board(), players=())
