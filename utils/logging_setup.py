"""
Logging setup utilities for match runs.

Configures console and file output and creates timestamped run directories
so each self-play run keeps its own log.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

VERBOSITY_LEVELS = {0: logging.ERROR, 1: logging.INFO, 2: logging.DEBUG}


def verbosity_to_level(verbosity: int) -> int:
    """Map 0/1/2 verbosity to ERROR/INFO/DEBUG."""
    return VERBOSITY_LEVELS.get(verbosity, logging.INFO)


def setup_logging(
    log_dir: Path,
    run_name: str,
    level: int = logging.INFO,
    format_string: Optional[str] = None
) -> Path:
    """
    Send root logging to ``<log_dir>/<run_name>.log`` and the console.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        log_dir: Directory where the log file is created
        run_name: Log file name without extension
        level: Logging level
        format_string: Optional format; defaults to DEFAULT_FORMAT

    Returns:
        Path to the log file
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{run_name}.log"

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    return log_file


def create_run_directory(base_dir: Path = Path("runs"), run_name: Optional[str] = None) -> Path:
    """
    Create ``<base_dir>/<YYYYMMDD>_<HHMMSS>_<run_name>/``.

    ``run_name`` defaults to "match".
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = Path(base_dir) / f"{timestamp}_{run_name or 'match'}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def setup_match_logging(
    base_run_dir: Path = Path("runs"),
    run_name: Optional[str] = None,
    level: int = logging.INFO
) -> Tuple[Path, Path]:
    """
    Create a run directory and log into it.

    Returns:
        Tuple of (run_directory, log_file_path)
    """
    run_dir = create_run_directory(base_run_dir, run_name)
    log_file = setup_logging(run_dir, "match", level)
    return run_dir, log_file
