# =============================================================================
# SUPERIOR SURF ENGINE - LOGGING CONFIGURATION
# =============================================================================
#
# The engine itself only ever calls logging.getLogger(__name__).
# Entry points (CLI, test runner, host applications) call setup_logging()
# once to attach handlers.
#
# Log files go to logs/engine/ relative to the project root.
#
# =============================================================================

import hashlib
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that receive the configured handlers
ENGINE_LOGGER_NAMES = ("surf_engine", "tools", "shared")


def _get_project_root() -> Path:
    """Get the project root directory."""
    # This file is at shared/logging_config.py
    return Path(__file__).parent.parent


def _get_log_dir() -> Path:
    return _get_project_root() / "logs" / "engine"


def parse_level(level) -> int:
    """Accept an int or a level name such as "DEBUG"."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logging(
    level=logging.INFO,
    console_output: bool = True,
    file_output: bool = False,
    log_dir: Optional[Path] = None,
) -> Optional[Path]:
    """
    Configure logging for the engine and its tools.

    Args:
        level: Logging level (int or name)
        console_output: Whether to log to console
        file_output: Whether to log to a timestamped file
        log_dir: Override for the log directory

    Returns:
        Path of the log file, or None when file output is disabled
    """
    level = parse_level(level)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers = []
    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    log_file = None
    if file_output:
        target_dir = log_dir or _get_log_dir()
        target_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = target_dir / f"engine_{timestamp}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in ENGINE_LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        # Remove existing handlers to avoid duplicates
        logger.handlers.clear()
        for handler in handlers:
            logger.addHandler(handler)
        logger.propagate = False

    logging.getLogger("surf_engine").info(
        f"Logging initialized | level={logging.getLevelName(level)}"
        + (f" | file={log_file}" if log_file else "")
    )
    return log_file


def compute_hash(data) -> str:
    """
    SHA-256 of a JSON-serializable structure.

    Serialized deterministically (sorted keys, no whitespace) so that equal
    inputs always hash equally.
    """
    serialized = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()
