"""Logging setup for the nebula-library command line.

Log records go to stderr so they never interleave with the tables printed on
stdout. An optional rotating file keeps a more detailed trace.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
FILE_FORMAT = (
    "%(asctime)s %(levelname)-8s %(name)s [%(filename)s:%(lineno)d] %(message)s"
)

LOG_FILE_MAX_BYTES = 1024 * 1024
LOG_FILE_BACKUPS = 2

# Libraries that are chatty below WARNING
NOISY_LOGGERS = ("sqlalchemy", "mutagen", "asyncio")


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name on a terminal."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        levelname = record.levelname
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def setup_logging(log_level: str = "WARNING", log_file: Optional[Path] = None) -> None:
    """Configure the root logger for one CLI invocation.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional rotating log file, records include source locations
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    if sys.stderr.isatty():
        console_handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, "%H:%M:%S"))
    else:
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, "%H:%M:%S"))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root_logger.addHandler(file_handler)
        logging.getLogger(__name__).debug("Logging to %s", log_file)


def configure_third_party_loggers() -> None:
    """Keep library loggers at WARNING whatever the CLI level is."""
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
