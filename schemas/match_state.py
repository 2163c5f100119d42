"""
Pydantic schemas for persisted match snapshots, and the hydrate repair step.

Saved data is untrusted: every field is defaulted or filtered, and scores,
active flags and (when missing) winners are recomputed from the board and the
rules instead of being read back.
"""

import json
import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, ValidationError, ValidationInfo,
    ValidatorFunctionWrapHandler, field_validator, model_validator,
)

from engine.board import (
    BOARD_SIZE, EMPTY, NUM_SEATS, PLAYER_COLORS, PlayerColor, Position,
    board_from_history, board_has_any_tiles, make_empty_board,
)
from engine.dice import make_match_id
from engine.move_generator import has_any_legal_move, is_game_over
from engine.pieces import ALL_PIECE_IDS
from engine.state import Match, MatchMeta, PlacedPiece, PlayerState, RollEntry, score_for_remaining, winners

logger = logging.getLogger(__name__)


def _validate_or_default(model: type, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
    """Validate one field; on failure fall back to that field's default."""
    try:
        return handler(value)
    except ValidationError:
        logger.debug(f"Defaulting {model.__name__}.{info.field_name}: bad value {value!r}")
        return model.model_fields[info.field_name].get_default(call_default_factory=True)


class AnchorModel(BaseModel):
    """Top-left board coordinate of a placed shape."""
    row: int
    col: int

    @model_validator(mode="before")
    @classmethod
    def _accept_xy(cls, data: Any) -> Any:
        # Older saves store anchors as {x, y}
        if isinstance(data, dict) and "row" not in data and "x" in data and "y" in data:
            return {"row": data["y"], "col": data["x"]}
        return data


class PlacementModel(BaseModel):
    """A placement history record."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    piece_id: str = Field(default="", validation_alias=AliasChoices("piece_id", "pieceId"))
    player: int = Field(ge=0, lt=NUM_SEATS)
    anchor: AnchorModel = Field(validation_alias=AliasChoices("anchor", "at"))
    shape: List[List[int]]

    @field_validator("piece_id", mode="wrap")
    @classmethod
    def _piece_id_or_default(cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> str:
        return _validate_or_default(cls, value, handler, info)

    @field_validator("shape")
    @classmethod
    def _check_shape(cls, value: List[List[int]]) -> List[List[int]]:
        if not value or not value[0] or any(len(row) != len(value[0]) for row in value):
            raise ValueError("shape must be a non-empty rectangular matrix")
        return [[1 if cell else 0 for cell in row] for row in value]


class PlayerModel(BaseModel):
    """Persisted seat state."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    color: Optional[str] = None
    remaining: Optional[List[Any]] = None
    has_played: bool = Field(default=False, validation_alias=AliasChoices("has_played", "hasPlayed"))
    is_bot: bool = Field(default=False, validation_alias=AliasChoices("is_bot", "isBot"))
    score: Optional[int] = None
    active: Optional[bool] = None

    @field_validator("color", "remaining", mode="wrap")
    @classmethod
    def _or_default(cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
        return _validate_or_default(cls, value, handler, info)

    @field_validator("has_played", "is_bot", mode="before")
    @classmethod
    def _truthy(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("score", "active", mode="before")
    @classmethod
    def _ignored(cls, value: Any) -> None:
        # Always recomputed from board and rules
        return None


class RollModel(BaseModel):
    seat: int
    value: Optional[int] = None


class LastRollModel(BaseModel):
    color: PlayerColor
    value: int


class MetaModel(BaseModel):
    """Persisted match metadata; every field optional."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    match_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("match_id", "matchId"))
    rng_seed: Optional[str] = Field(default=None, validation_alias=AliasChoices("rng_seed", "rngSeed"))
    rolls: List[Any] = Field(default_factory=list)
    seat_order: List[Any] = Field(default_factory=list)
    last_roll: Optional[List[Any]] = Field(default=None, validation_alias=AliasChoices("last_roll", "lastRoll"))
    reveal_bots: bool = True

    @field_validator("*", mode="wrap")
    @classmethod
    def _or_default(cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo) -> Any:
        return _validate_or_default(cls, value, handler, info)


class MatchSnapshot(BaseModel):
    """Plain, serializable match snapshot as handed to the persistence store."""
    board: List[List[Optional[int]]] = Field(description="20x20 grid, seat id or null")
    players: List[Dict[str, Any]]
    current: int
    history: List[Dict[str, Any]]
    winner_ids: Optional[List[int]] = None
    meta: Dict[str, Any] = Field(default_factory=dict)


def to_snapshot(match: Match) -> Dict[str, Any]:
    """Serialize a match to a JSON-compatible dict that ``hydrate_match`` accepts."""
    meta = match.meta
    snapshot = MatchSnapshot(
        board=[[None if cell == EMPTY else int(cell) for cell in row] for row in match.board.tolist()],
        players=[
            {
                "id": p.id,
                "color": p.color.value,
                "remaining": list(p.remaining),
                "has_played": p.has_played,
                "is_bot": p.is_bot,
                "score": p.score,
                "active": p.active,
            }
            for p in match.players
        ],
        current=match.current,
        history=[
            {
                "piece_id": record.piece_id,
                "player": record.player,
                "anchor": {"row": record.anchor.row, "col": record.anchor.col},
                "shape": np.asarray(record.shape).astype(int).tolist(),
            }
            for record in match.history
        ],
        winner_ids=list(match.winner_ids) if match.winner_ids is not None else None,
        meta={
            "match_id": meta.match_id,
            "rng_seed": meta.rng_seed,
            "rolls": [{"seat": r.seat, "value": r.value} for r in meta.rolls],
            "seat_order": list(meta.seat_order),
            "last_roll": (
                [{"color": color.value, "value": value} for color, value in meta.last_roll]
                if meta.last_roll is not None else None
            ),
            "showed_roll_once": meta.showed_roll_once,
            "reveal_bots": meta.reveal_bots,
        },
    )
    return snapshot.model_dump(mode="json")


@dataclass(frozen=True)
class Hydrated:
    """Hydrate succeeded; ``match`` is fully repaired."""
    match: Match


@dataclass(frozen=True)
class Rejected:
    """Hydrate input was structurally unusable."""
    reason: str


HydrateResult = Union[Hydrated, Rejected]


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def normalize_board(raw: Any, size: int = BOARD_SIZE) -> np.ndarray:
    """
    Coerce arbitrary nested data into a size x size board.

    Numeric cells become ``int(cell) % 4``; anything else, and anything outside
    the grid, is empty.
    """
    board = make_empty_board(size)
    if not isinstance(raw, list):
        return board
    for r, row in enumerate(raw[:size]):
        if not isinstance(row, list):
            continue
        for c, cell in enumerate(row[:size]):
            if _is_number(cell):
                board[r, c] = int(cell) % NUM_SEATS
    return board


def _parse_history(raw: Any) -> List[PlacedPiece]:
    if not isinstance(raw, list):
        return []
    history = []
    for entry in raw:
        try:
            record = PlacementModel.model_validate(entry)
        except ValidationError:
            logger.debug(f"Dropping malformed history record: {entry!r}")
            continue
        shape = np.array(record.shape, dtype=np.uint8)
        shape.setflags(write=False)
        history.append(PlacedPiece(
            piece_id=record.piece_id,
            player=record.player,
            anchor=Position(record.anchor.row, record.anchor.col),
            shape=shape,
        ))
    return history


def _parse_players(raw: List[Any], history: List[PlacedPiece]) -> List[PlayerState]:
    by_id: Dict[int, PlayerModel] = {}
    for entry in raw:
        try:
            model = PlayerModel.model_validate(entry)
        except ValidationError:
            continue
        by_id.setdefault(model.id, model)

    played = {record.player for record in history}
    color_values = {c.value for c in PLAYER_COLORS}
    players = []
    for seat in range(NUM_SEATS):
        model = by_id.get(seat)
        if model is not None and model.remaining is not None:
            remaining = tuple(dict.fromkeys(
                piece_id for piece_id in model.remaining
                if isinstance(piece_id, str) and piece_id in ALL_PIECE_IDS
            ))
        else:
            remaining = ALL_PIECE_IDS
        color = (
            PlayerColor(model.color)
            if model is not None and model.color in color_values
            else PLAYER_COLORS[seat]
        )
        players.append(PlayerState(
            id=seat,
            color=color,
            remaining=remaining,
            has_played=(model is not None and model.has_played) or seat in played,
            is_bot=model is not None and model.is_bot,
            score=score_for_remaining(remaining),
        ))
    return players


def _parse_meta(raw: Any) -> MatchMeta:
    try:
        model = MetaModel.model_validate(raw if isinstance(raw, dict) else {})
    except ValidationError:
        model = MetaModel()

    rolls = []
    for entry in model.rolls:
        try:
            roll = RollModel.model_validate(entry)
        except ValidationError:
            continue
        rolls.append(RollEntry(roll.seat, roll.value))

    last_roll = None
    if model.last_roll is not None:
        parsed = []
        for entry in model.last_roll:
            try:
                item = LastRollModel.model_validate(entry)
            except ValidationError:
                continue
            parsed.append((item.color, item.value))
        last_roll = tuple(parsed)

    seat_order = tuple(s for s in model.seat_order if isinstance(s, int) and not isinstance(s, bool))
    match_id = model.match_id or make_match_id()
    return MatchMeta(
        match_id=match_id,
        rng_seed=model.rng_seed or match_id,
        roll_pending=False,  # never resume into the roll phase
        rolls=tuple(rolls),
        seat_order=seat_order,
        last_roll=last_roll,
        showed_roll_once=True,
        order_resolved=True,
        hydrated=True,
        reveal_bots=model.reveal_bots,
    )


def hydrate_match(raw: Any) -> HydrateResult:
    """
    Validate and repair an untrusted match snapshot.

    Repair steps: coerce the board to 20x20, rebuild it from history when it is
    empty but history is not, filter remaining pieces to catalog ids, derive
    has_played from history, recompute scores and active flags, compute winners
    when the match is over but none were saved, and move the current pointer
    off an inactive seat.

    Args:
        raw: Parsed JSON (dict), a JSON string, or a Match

    Returns:
        Hydrated with the repaired match, or Rejected if the input is not
        match-shaped or has fewer than four seats
    """
    if isinstance(raw, Match):
        raw = to_snapshot(raw)
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            return Rejected("snapshot is not valid JSON")
    if not isinstance(raw, dict):
        return Rejected("snapshot is not a mapping")
    raw_players = raw.get("players")
    if not isinstance(raw_players, list) or len(raw_players) < NUM_SEATS:
        return Rejected("snapshot does not contain four seats")

    history = _parse_history(raw.get("history"))
    board = normalize_board(raw.get("board"))
    if not board_has_any_tiles(board) and history:
        board = board_from_history(history)

    players = _parse_players(raw_players, history)
    players = tuple(
        replace(p, active=has_any_legal_move(players, p.id, board))
        for p in players
    )

    raw_current = raw.get("current")
    current = int(raw_current) % NUM_SEATS if _is_number(raw_current) else 0

    winner_ids: Optional[Tuple[int, ...]] = None
    raw_winners = raw.get("winner_ids", raw.get("winnerIds"))
    if isinstance(raw_winners, list):
        numeric = [int(n) % NUM_SEATS for n in raw_winners if _is_number(n)]
        winner_ids = tuple(numeric) if numeric else None
    if winner_ids is None and is_game_over(players, board):
        winner_ids = winners(players)

    if not players[current].active:
        for step in range(1, NUM_SEATS + 1):
            seat = (current + step) % NUM_SEATS
            if players[seat].active:
                current = seat
                break

    match = Match(
        board=board,
        players=players,
        current=current,
        history=tuple(history),
        winner_ids=winner_ids,
        meta=_parse_meta(raw.get("meta")),
    )
    logger.debug(f"Hydrated match {match.meta.match_id}: history={len(history)}, current={current}, winners={winner_ids}")
    return Hydrated(match)
