"""File and console logging for the API process.

Two files are written under ``LOG_DIR``:
- info.log: everything at INFO and above
- error.log: ERROR and above, e.g. lookup storage failures and ILE fallbacks
"""

import logging
import sys
from pathlib import Path

from replybot.core.config import Settings, get_settings

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """Replace the root logger's handlers with file and console handlers.

    Args:
        settings: Optional settings. If None, uses global settings.

    Returns:
        The root logger.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)

    settings.log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    root_logger.addHandler(_file_handler(settings.log_dir / "info.log", logging.INFO))
    root_logger.addHandler(_file_handler(settings.log_dir / "error.log", logging.ERROR))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    return root_logger
