"""
Bloktris match state machine.

``reducer(state, command)`` is the single authority over match state. It never
mutates its input: every accepted command returns a new Match, and an invalid
command returns the very same object it was given.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from .board import NUM_SEATS, PLAYER_COLORS, Position, make_empty_board, placement_cells
from .dice import bot_roll_key, human_roll_key, make_match_id, resolve_turn_order, roll_die
from .move_generator import has_any_legal_move, is_game_over, is_legal_move
from .pieces import orientation_index
from .state import (
    Match, MatchMeta, PlacedPiece, PlayerState, RollEntry,
    build_players, score_for_remaining, winners,
)

logger = logging.getLogger(__name__)


@dataclass
class GameResult:
    """
    Final scores and winner information.

    Attributes:
        scores: seat id -> remaining-square count
        winner_ids: Seats tied for the lowest score
        is_tie: True if more than one seat tied
    """
    scores: Dict[int, int]
    winner_ids: Tuple[int, ...]
    is_tie: bool


# ---------- Commands ----------

@dataclass(frozen=True)
class Start:
    human_count: int
    seed: Optional[str] = None
    reveal_bots: bool = True


@dataclass(frozen=True)
class HumanRoll:
    pass


@dataclass(frozen=True)
class BotRoll:
    seat: int


@dataclass(frozen=True, eq=False)
class Place:
    seat: int
    piece_id: str
    shape: Any  # occupancy matrix
    anchor: Position


@dataclass(frozen=True)
class Pass:
    seat: int


@dataclass(frozen=True)
class MarkRollShown:
    pass


@dataclass(frozen=True, eq=False)
class Hydrate:
    raw: Any = field(default=None)


Command = Union[Start, HumanRoll, BotRoll, Place, Pass, MarkRollShown, Hydrate]


# ---------- Move application ----------

def next_player(players: Tuple[PlayerState, ...], seat: int, board: np.ndarray) -> int:
    """
    First seat clockwise from ``seat + 1`` that is active and can move.

    Returns ``seat`` unchanged when nobody qualifies; game-over detection
    handles that case.
    """
    for step in range(1, NUM_SEATS + 1):
        candidate = (seat + step) % NUM_SEATS
        if players[candidate].active and has_any_legal_move(players, candidate, board):
            return candidate
    return seat


def apply_move(match: Match, seat: int, piece_id: str, shape, anchor: Position) -> Match:
    """
    Apply a placement the caller has already checked for legality.

    Fills the cells, removes the piece from the seat, marks the seat as having
    played, appends a history record, advances the current seat and sets the
    winners if the match is now over.
    """
    shape = np.array(shape, dtype=np.uint8)
    shape.setflags(write=False)

    board = match.board.copy()
    for pos in placement_cells(shape, anchor):
        board[pos.row, pos.col] = seat

    players = tuple(
        replace(
            p,
            has_played=True,
            remaining=tuple(pid for pid in p.remaining if pid != piece_id),
            score=score_for_remaining(pid for pid in p.remaining if pid != piece_id),
        ) if p.id == seat else p
        for p in match.players
    )
    history = match.history + (PlacedPiece(piece_id=piece_id, player=seat, anchor=anchor, shape=shape),)
    current = next_player(players, seat, board)
    winner_ids = winners(players) if is_game_over(players, board) else None

    return replace(match, board=board, players=players, history=history,
                   current=current, winner_ids=winner_ids)


def refresh_players(players: Tuple[PlayerState, ...], board: np.ndarray) -> Tuple[PlayerState, ...]:
    """Recompute every score and active flag; inactive seats stay inactive."""
    return tuple(
        replace(
            p,
            active=p.active and has_any_legal_move(players, p.id, board),
            score=score_for_remaining(p.remaining),
        )
        for p in players
    )


# ---------- Transitions ----------

def _start(state: Match, command: Start) -> Match:
    if command.human_count not in (1, 4):
        logger.debug(f"Ignoring start with human_count={command.human_count}")
        return state

    players = build_players(command.human_count)
    match_id = make_match_id()
    rng_seed = command.seed if command.seed is not None else match_id
    meta = MatchMeta(
        match_id=match_id,
        rng_seed=rng_seed,
        roll_pending=True,
        roll_queue=tuple(p.id for p in players if not p.is_bot),
        rolls=tuple(RollEntry(p.id) for p in players),
        reveal_bots=command.reveal_bots,
    )
    logger.info(f"Match {match_id} started: humans={command.human_count}, seed={rng_seed}")
    return Match(board=make_empty_board(), players=players, current=0,
                 history=(), winner_ids=None, meta=meta)


def _with_roll(rolls: Tuple[RollEntry, ...], seat: int, value: int) -> Tuple[RollEntry, ...]:
    return tuple(RollEntry(r.seat, value) if r.seat == seat else r for r in rolls)


def _resolve_order(state: Match, meta: MatchMeta) -> Match:
    """Tie-break, sort and remap seats into their final slots. Runs once."""
    if meta.order_resolved:
        return state

    turn_order = resolve_turn_order([(r.seat, r.value) for r in meta.rolls], meta.rng_seed)
    players = tuple(
        replace(state.players[old_seat], id=slot, color=PLAYER_COLORS[slot])
        for slot, old_seat in enumerate(turn_order.order)
    )
    meta = replace(
        meta,
        roll_pending=False,
        roll_queue=(),
        bot_queue=(),
        rolls=tuple(RollEntry(seat, value) for seat, value in turn_order.resolved),
        seat_order=turn_order.order,
        last_roll=tuple((PLAYER_COLORS[slot], value) for slot, (_, value) in enumerate(turn_order.resolved)),
        tie_breaks=turn_order.tie_breaks,
        showed_roll_once=False,
        order_resolved=True,
    )
    logger.info(f"Match {meta.match_id} turn order resolved: seats={turn_order.order}, rolls={turn_order.resolved}")
    return replace(state, board=make_empty_board(), players=players, current=0,
                   history=(), winner_ids=None, meta=meta)


def _human_roll(state: Match, command: HumanRoll) -> Match:
    meta = state.meta
    if not meta.roll_pending or not meta.roll_queue:
        return state

    roller = meta.roll_queue[0]
    rolls = _with_roll(meta.rolls, roller, roll_die(human_roll_key(meta.rng_seed, roller)))
    remaining = meta.roll_queue[1:]
    if remaining:
        return replace(state, meta=replace(meta, rolls=rolls, roll_queue=remaining))

    bot_queue = tuple(p.id for p in state.players if p.is_bot)
    if bot_queue and meta.reveal_bots:
        return replace(state, meta=replace(
            meta, rolls=rolls, roll_queue=(), roll_pending=False, bot_queue=bot_queue,
        ))

    for seat in bot_queue:
        rolls = _with_roll(rolls, seat, roll_die(bot_roll_key(meta.rng_seed, seat)))
    return _resolve_order(state, replace(meta, rolls=rolls, roll_queue=(), roll_pending=False))


def _bot_roll(state: Match, command: BotRoll) -> Match:
    meta = state.meta
    if not meta.bot_queue or meta.bot_queue[0] != command.seat:
        return state

    rolls = _with_roll(meta.rolls, command.seat, roll_die(bot_roll_key(meta.rng_seed, command.seat)))
    remaining = meta.bot_queue[1:]
    if remaining:
        return replace(state, meta=replace(meta, rolls=rolls, bot_queue=remaining))
    return _resolve_order(state, replace(meta, rolls=rolls, bot_queue=()))


def _place(state: Match, command: Place) -> Match:
    if state.is_over or not state.meta.order_resolved:
        return state
    if command.seat != state.current or not 0 <= command.seat < len(state.players):
        logger.debug(f"Ignoring place for seat {command.seat}: current seat is {state.current}")
        return state

    player = state.players[command.seat]
    if command.piece_id not in player.remaining:
        logger.debug(f"Ignoring place: seat {command.seat} has no piece {command.piece_id}")
        return state
    if orientation_index(command.piece_id, command.shape) is None:
        logger.debug(f"Ignoring place: shape is not an orientation of {command.piece_id}")
        return state
    if not is_legal_move(state.board, player, command.shape, command.anchor):
        logger.debug(f"Ignoring illegal place: seat={command.seat}, piece={command.piece_id}, anchor={command.anchor}")
        return state

    placed = apply_move(state, command.seat, command.piece_id, command.shape, command.anchor)
    players = refresh_players(placed.players, placed.board)
    winner_ids = placed.winner_ids
    if winner_ids is None and is_game_over(players, placed.board):
        winner_ids = winners(players)
    if winner_ids is not None:
        logger.info(f"Match {state.meta.match_id} over: winners={winner_ids}, scores={[p.score for p in players]}")
    return replace(placed, players=players, winner_ids=winner_ids)


def _pass(state: Match, command: Pass) -> Match:
    if state.is_over or not state.meta.order_resolved:
        return state
    if not 0 <= command.seat < len(state.players):
        return state

    if has_any_legal_move(state.players, command.seat, state.board):
        logger.warning(f"Seat {command.seat} passed with legal moves available")

    players = tuple(
        replace(p, active=False if p.id == command.seat else p.active,
                score=score_for_remaining(p.remaining))
        for p in state.players
    )
    current = (state.current + 1) % NUM_SEATS
    winner_ids = winners(players) if is_game_over(players, state.board) else None
    if winner_ids is not None:
        logger.info(f"Match {state.meta.match_id} over: winners={winner_ids}, scores={[p.score for p in players]}")
    return replace(state, players=players, current=current, winner_ids=winner_ids)


def _mark_roll_shown(state: Match, command: MarkRollShown) -> Match:
    if state.meta.showed_roll_once:
        return state
    return replace(state, meta=replace(state.meta, showed_roll_once=True))


def _hydrate(state: Match, command: Hydrate) -> Match:
    # Imported here: schemas depends on the engine package
    from schemas.match_state import Hydrated, hydrate_match

    result = hydrate_match(command.raw)
    if isinstance(result, Hydrated):
        return result.match
    logger.info(f"Discarding saved match: {result.reason}")
    return state


_HANDLERS = {
    Start: _start,
    HumanRoll: _human_roll,
    BotRoll: _bot_roll,
    Place: _place,
    Pass: _pass,
    MarkRollShown: _mark_roll_shown,
    Hydrate: _hydrate,
}


def reducer(state: Match, command: Command) -> Match:
    """
    Apply a command to a match snapshot.

    Args:
        state: Current snapshot (never modified)
        command: One of Start, HumanRoll, BotRoll, Place, Pass, MarkRollShown, Hydrate

    Returns:
        The next snapshot, or ``state`` itself if the command was not accepted
    """
    handler = _HANDLERS.get(type(command))
    if handler is None:
        return state
    return handler(state, command)


# ---------- Queries ----------

def is_legal_placement(match: Match, seat: int, shape, anchor: Position) -> bool:
    if not 0 <= seat < len(match.players):
        return False
    return is_legal_move(match.board, match.players[seat], shape, anchor)


def seat_has_any_legal_move(match: Match, seat: int) -> bool:
    if not 0 <= seat < len(match.players):
        return False
    return has_any_legal_move(match.players, seat, match.board)


def is_match_over(match: Match) -> bool:
    return bool(match.players) and is_game_over(match.players, match.board)


def game_result(match: Match) -> GameResult:
    """Scores and winners; the winners are computed from current scores if unset."""
    scores = {p.id: p.score for p in match.players}
    winner_ids = match.winner_ids if match.winner_ids is not None else winners(match.players)
    return GameResult(scores=scores, winner_ids=winner_ids, is_tie=len(winner_ids) > 1)
