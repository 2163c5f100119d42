"""
Deterministic dice and turn-order resolution.

A string key is hashed (32-bit FNV-1a over UTF-16 code units) into the seed
of a mulberry32 generator, so the same match seed and role salt always give
the same die value. No module state is kept: each generator lives only in the
caller's hands.
"""

import logging
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterator, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

MASK32 = 0xFFFFFFFF
FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
MAX_TIE_BREAK_ITERATIONS = 10


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply, low 32 bits kept."""
    return (a * b) & MASK32


def str_to_seed(key: str) -> int:
    """Hash a string to an unsigned 32-bit seed (FNV-1a)."""
    h = FNV_OFFSET_BASIS
    raw = key.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(raw), 2):
        h ^= raw[i] | (raw[i + 1] << 8)
        h = _imul(h, FNV_PRIME)
    return h


def mulberry32(seed: int) -> Iterator[float]:
    """Yield uniform floats in [0, 1) from a 32-bit seed."""
    state = seed & MASK32
    while True:
        state = (state + 0x6D2B79F5) & MASK32
        t = state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
        yield ((t ^ (t >> 14)) & MASK32) / 4294967296


def seeded_die(key: str) -> Iterator[int]:
    """Yield six-sided die values seeded from a string key."""
    for value in mulberry32(str_to_seed(key)):
        yield 1 + int(value * 6)


def roll_die(key: str) -> int:
    """First die value of the generator seeded by ``key``."""
    return next(seeded_die(key))


def human_roll_key(rng_seed: str, seat: int) -> str:
    return f"{rng_seed}-H-{seat}"


def bot_roll_key(rng_seed: str, seat: int) -> str:
    return f"{rng_seed}-B-{seat}"


def tie_break_key(rng_seed: str, seat: int, iteration: int) -> str:
    return f"{rng_seed}-TB-{seat}-{iteration}"


def make_match_id(now: Optional[datetime] = None) -> str:
    """
    Create a match id like ``20260118-K3Q9``.

    Used as the default RNG seed when a match is started without one.
    """
    now = now or datetime.now()
    alphabet = string.ascii_uppercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(4))
    return f"{now.strftime('%Y%m%d')}-{suffix}"


@dataclass(frozen=True)
class TurnOrder:
    """
    Result of turn-order resolution.

    Attributes:
        order: Pre-roll seat id for each final slot (slot 0 plays first)
        resolved: Final (seat, value) pairs, sorted into play order
        tie_breaks: seat -> (value before the first reroll, last rerolled value)
        iterations: Number of reroll rounds performed
    """
    order: Tuple[int, ...]
    resolved: Tuple[Tuple[int, int], ...]
    tie_breaks: Dict[int, Tuple[int, int]] = field(default_factory=dict)
    iterations: int = 0


def _has_ties(values: Sequence[Tuple[int, int]]) -> bool:
    seen = set()
    for _, value in values:
        if value in seen:
            return True
        seen.add(value)
    return False


def resolve_turn_order(
    rolls: Sequence[Tuple[int, int]],
    rng_seed: str,
    die: Callable[[str], int] = roll_die,
    max_iterations: int = MAX_TIE_BREAK_ITERATIONS,
) -> TurnOrder:
    """
    Break ties and sort seats into play order.

    While any two seats share a value (at most ``max_iterations`` rounds),
    every seat in a tied group rerolls with its tie-break key. Residual ties
    fall back to ascending seat id. Seats are then sorted by value descending.

    Args:
        rolls: (seat, die value) pairs, one per seat
        rng_seed: Match seed used to derive reroll keys
        die: Maps a key to a die value; replaceable for tests
        max_iterations: Reroll round cap

    Returns:
        TurnOrder with the final slot mapping
    """
    resolved = [(seat, value) for seat, value in rolls]
    tie_breaks: Dict[int, Tuple[int, int]] = {}

    iteration = 0
    while iteration < max_iterations and _has_ties(resolved):
        iteration += 1
        groups: Dict[int, list] = {}
        for idx, (_, value) in enumerate(resolved):
            groups.setdefault(value, []).append(idx)
        for indices in groups.values():
            if len(indices) < 2:
                continue
            for idx in indices:
                seat, before = resolved[idx]
                after = die(tie_break_key(rng_seed, seat, iteration))
                first = tie_breaks.get(seat, (before, after))[0]
                tie_breaks[seat] = (first, after)
                resolved[idx] = (seat, after)

    if _has_ties(resolved):
        logger.debug(f"Residual tie after {iteration} reroll rounds, falling back to seat order")

    ordered = sorted(resolved, key=lambda pair: (-pair[1], pair[0]))
    return TurnOrder(
        order=tuple(seat for seat, _ in ordered),
        resolved=tuple(ordered),
        tie_breaks=tie_breaks,
        iterations=iteration,
    )
