"""Logging setup for tasktree.

Every module logs through ``get_logger(__name__)``. The command line tool
calls ``setup_logging()`` once at startup, which sends all records to a
rotating file under ``~/.tasktree/logs`` and, on request, to the terminal
through rich.

The level comes from the ``log_level`` argument, then ``TASKTREE_LOG_LEVEL``,
then INFO.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Tuple


LOG_DIR = Path.home() / ".tasktree" / "logs"
LOG_FILE = LOG_DIR / "tasktree.log"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotate at 10MB, keep 5 old files
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5

LEVEL_ENV_VAR = "TASKTREE_LOG_LEVEL"


def _resolve_level(log_level: Optional[str]) -> Tuple[str, int]:
    """Return the level name and number to use; unknown names mean INFO."""
    name = (log_level or os.getenv(LEVEL_ENV_VAR) or "INFO").upper()
    number = logging.getLevelName(name)
    if not isinstance(number, int):
        return "INFO", logging.INFO
    return name, number


def _file_handler(level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _console_handler(level: int) -> logging.Handler:
    from rich.logging import RichHandler

    handler = RichHandler(show_path=False, rich_tracebacks=True)
    handler.setLevel(level)
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    use_console_handler: bool = False
) -> None:
    """Configure the root logger for tasktree.

    Safe to call more than once: previous handlers are replaced.

    Args:
        log_level: Level name such as "DEBUG" or "warning". Falls back to
            TASKTREE_LOG_LEVEL, then INFO.
        use_console_handler: Also print records to stderr through rich.
    """
    level_name, level = _resolve_level(log_level)

    LOG_DIR.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    root_logger.addHandler(_file_handler(level))
    if use_console_handler:
        root_logger.addHandler(_console_handler(level))

    logging.getLogger(__name__).info(
        f"Logging to {LOG_FILE} at {level_name} (console={use_console_handler})"
    )


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module; pass ``__name__``."""
    return logging.getLogger(name)
