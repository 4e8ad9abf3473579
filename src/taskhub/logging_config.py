"""Centralized logging configuration for TaskHub.

Console output goes to stderr; a rotating log file is added when a path is
configured through ``TASKHUB_LOG_FILE``.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation configuration
MAX_BYTES = 5 * 1024 * 1024  # 5MB
BACKUP_COUNT = 3

_HANDLER_MARK = "_taskhub_handler"


def setup_logging(
    log_level: str | None = None,
    log_file: Path | None = None,
) -> None:
    """Initialize application logging.

    Args:
        log_level: Level name (DEBUG, INFO, ...). Falls back to the
            TASKHUB_LOG_LEVEL environment variable, then INFO.
        log_file: Optional path for a rotating file handler.

    Safe to call more than once: handlers installed by a previous call are
    replaced rather than duplicated.
    """
    if log_level is None:
        log_level = os.getenv("TASKHUB_LOG_LEVEL", "INFO")

    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logger = logging.getLogger("taskhub")
    logger.setLevel(numeric_level)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    setattr(console, _HANDLER_MARK, True)
    logger.addHandler(console)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_MARK, True)
        logger.addHandler(file_handler)
