#!/usr/bin/env python3
"""
Play a full Bloktris match with every seat driven by the heuristic bot.

Human seats roll automatically, the turn order is resolved through the
reducer, and each accepted transition is saved to the match store so an
interrupted run can be resumed with ``--resume``.
"""

import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from agents.heuristic_agent import bot_move
from engine.board import render_board
from engine.game import BotRoll, Hydrate, HumanRoll, MarkRollShown, Pass, Place, Start, game_result, reducer
from engine.state import Match, initial_match
from storage.match_store import MatchStore
from utils.config import RunConfig, create_arg_parser, parse_args_to_config
from utils.logging_setup import setup_match_logging, verbosity_to_level

logger = logging.getLogger(__name__)


def roll_for_order(state: Match, store: MatchStore) -> Match:
    """Drive the roll phase until the turn order is resolved."""
    while state.meta.roll_pending and state.meta.roll_queue:
        state = reducer(state, HumanRoll())
        store.save(state)
    while state.meta.bot_queue:
        state = reducer(state, BotRoll(state.meta.bot_queue[0]))
        store.save(state)

    if state.meta.last_roll:
        rolls = ", ".join(f"{color.value}={value}" for color, value in state.meta.last_roll)
        logger.info(f"Turn order: {rolls}")
    if state.meta.tie_breaks:
        logger.info(f"Tie-breaks: {state.meta.tie_breaks}")
    return reducer(state, MarkRollShown())


def play_out(state: Match, store: MatchStore, max_turns: int) -> Match:
    """Place or pass for the current seat until the match ends."""
    turns = 0
    while not state.is_over and turns < max_turns:
        seat = state.current
        placement = bot_move(state, seat)
        if placement is None:
            command = Pass(seat)
        else:
            command = Place(seat, placement.piece_id, placement.shape, placement.anchor)

        next_state = reducer(state, command)
        if next_state is state:
            logger.error(f"Command rejected for seat {seat}: {command}")
            break
        if placement is not None:
            logger.debug(f"Seat {seat} placed {placement.piece_id} at ({placement.anchor.row}, {placement.anchor.col})")
        else:
            logger.debug(f"Seat {seat} passed")
        state = next_state
        store.save(state)
        turns += 1

    if not state.is_over:
        logger.warning(f"Stopped after {turns} turns without a result")
    return state


def run(config: RunConfig, resume: bool = False) -> Match:
    store = MatchStore(config.store_path)
    try:
        state = initial_match()
        if resume and store.has_saved_match():
            state = reducer(state, Hydrate(store.load()))
            if state.players:
                logger.info(f"Resumed match {state.meta.match_id}")

        if not state.players:
            state = reducer(state, Start(config.human_count, seed=config.seed, reveal_bots=config.reveal_bots))
            store.save(state)
            state = roll_for_order(state, store)

        state = play_out(state, store, config.max_turns)

        result = game_result(state)
        logger.info(f"Final board:\n{render_board(state.board)}")
        logger.info(f"Scores: {result.scores}")
        if result.is_tie:
            logger.info(f"Tie between seats {result.winner_ids}")
        else:
            logger.info(f"Winner: seat {result.winner_ids[0]}")
        if state.is_over:
            store.clear()
        return state
    finally:
        store.close()


def main():
    parser = create_arg_parser()
    args = parser.parse_args()
    config = parse_args_to_config(args)

    run_dir, log_file = setup_match_logging(
        base_run_dir=config.log_dir,
        run_name=config.run_name,
        level=verbosity_to_level(config.logging_verbosity),
    )
    config.save_to_file(run_dir / "config.yaml")
    config.log_config(logger)
    logger.info(f"Logging to {log_file}")

    run(config, resume=args.resume)


if __name__ == "__main__":
    main()
