"""
Pydantic schemas for persisted Bloktris matches.
"""

from .match_state import (
    AnchorModel, PlacementModel, PlayerModel, MetaModel, MatchSnapshot,
    Hydrated, Rejected, HydrateResult,
    hydrate_match, normalize_board, to_snapshot
)

__all__ = [
    "AnchorModel",
    "PlacementModel",
    "PlayerModel",
    "MetaModel",
    "MatchSnapshot",
    "Hydrated",
    "Rejected",
    "HydrateResult",
    "hydrate_match",
    "normalize_board",
    "to_snapshot"
]
