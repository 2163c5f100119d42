"""
Run configuration for Bloktris self-play.

Configuration can be provided via CLI arguments or YAML/JSON config files.
A config file overrides the defaults; explicit CLI flags override the file.
"""

import argparse
import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class RunConfig:
    """
    Structured run configuration.

    Attributes:
        seed: Match RNG seed (None = use the generated match id)
        human_count: 1 (seat 0 human, three bots) or 4 (hot-seat)
        reveal_bots: Reveal bot dice one at a time instead of all at once
        store_path: SQLite file for the saved match
        log_dir: Base directory for run logs
        run_name: Name used for the run directory
        logging_verbosity: 0=ERROR, 1=INFO, 2=DEBUG
        max_turns: Safety cap on place/pass commands in one match
    """

    seed: Optional[str] = None
    human_count: int = 1
    reveal_bots: bool = True
    store_path: str = "bloktris.db"
    log_dir: str = "runs"
    run_name: str = "selfplay"
    logging_verbosity: int = 1
    max_turns: int = 500

    def __post_init__(self):
        if self.human_count not in (1, 4):
            raise ValueError(f"human_count must be 1 or 4, got {self.human_count}")
        if self.max_turns < 1:
            raise ValueError(f"max_turns must be positive, got {self.max_turns}")

    @classmethod
    def from_dict(cls, config_dict: dict) -> "RunConfig":
        """Create config from dictionary, ignoring unknown keys."""
        valid_keys = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config_dict.items() if k in valid_keys})

    @classmethod
    def from_file(cls, config_path: Path) -> "RunConfig":
        """Load config from YAML or JSON file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r") as f:
            if config_path.suffix.lower() in [".yaml", ".yml"]:
                config_dict = yaml.safe_load(f) or {}
            elif config_path.suffix.lower() == ".json":
                config_dict = json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {config_path.suffix}")

        return cls.from_dict(config_dict)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def save_to_file(self, config_path: Path):
        """Save config to YAML or JSON file."""
        config_path = Path(config_path)
        with open(config_path, "w") as f:
            if config_path.suffix.lower() in [".yaml", ".yml"]:
                yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
            elif config_path.suffix.lower() == ".json":
                json.dump(self.to_dict(), f, indent=2, sort_keys=False)
            else:
                raise ValueError(f"Unsupported config file format: {config_path.suffix}")

    def log_config(self, logger: logging.Logger):
        """Log the effective configuration."""
        logger.info("=" * 60)
        logger.info("Run Configuration")
        logger.info("=" * 60)
        logger.info(f"Seed: {self.seed if self.seed is not None else 'Generated match id'}")
        logger.info(f"Humans: {self.human_count}")
        logger.info(f"Reveal Bot Rolls: {self.reveal_bots}")
        logger.info(f"Store: {self.store_path}")
        logger.info(f"Log Dir: {self.log_dir}")
        logger.info(f"Max Turns: {self.max_turns}")
        logger.info("=" * 60)


def create_arg_parser() -> argparse.ArgumentParser:
    """Create argument parser for the self-play script."""
    parser = argparse.ArgumentParser(
        description="Play a Bloktris match with every seat driven by the heuristic bot",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--config", type=str, default=None,
                        help="Path to YAML or JSON config file")
    parser.add_argument("--seed", type=str, default=None,
                        help="Match RNG seed (defaults to the generated match id)")
    parser.add_argument("--humans", type=int, choices=[1, 4], default=None, dest="human_count",
                        help="Number of human seats; humans roll automatically in self-play")
    parser.add_argument("--no-reveal-bots", action="store_true",
                        help="Roll every bot die at once after the last human roll")
    parser.add_argument("--store", type=str, default=None, dest="store_path",
                        help="SQLite file for the saved match")
    parser.add_argument("--resume", action="store_true",
                        help="Resume the match saved in the store instead of starting a new one")
    parser.add_argument("--log-dir", type=str, default=None,
                        help="Base directory for run logs")
    parser.add_argument("--run-name", type=str, default=None,
                        help="Run directory name suffix")
    parser.add_argument("--verbosity", type=int, choices=[0, 1, 2], default=None,
                        help="Logging verbosity: 0=ERROR, 1=INFO, 2=DEBUG")
    parser.add_argument("--max-turns", type=int, default=None,
                        help="Safety cap on turns per match")
    return parser


def parse_args_to_config(args: argparse.Namespace) -> RunConfig:
    """Convert parsed arguments to RunConfig."""
    config = RunConfig.from_file(Path(args.config)) if args.config else RunConfig()

    if args.seed is not None:
        config.seed = args.seed
    if args.human_count is not None:
        config.human_count = args.human_count
    if args.no_reveal_bots:
        config.reveal_bots = False
    if args.store_path is not None:
        config.store_path = args.store_path
    if args.log_dir is not None:
        config.log_dir = args.log_dir
    if args.run_name is not None:
        config.run_name = args.run_name
    if args.verbosity is not None:
        config.logging_verbosity = args.verbosity
    if args.max_turns is not None:
        config.max_turns = args.max_turns
    return config
