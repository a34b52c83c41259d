import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys

from movequote.core.config import settings

LOG_DIR = Path(settings.LOG_DIR)
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOG_FILE = LOG_DIR / "movequote.log"
LOG_FORMAT = "%(levelname)s | %(asctime)s | %(name)s | %(message)s"


def _console_stream():
    try:
        return open(sys.stdout.fileno(), mode="w", encoding="utf-8", closefd=False)
    except (AttributeError, OSError, ValueError):
        # stdout may be swapped out (pytest capture, embedded servers)
        return sys.stdout


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    # Loggers are module-level singletons; attach handlers only once
    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        file_handler = RotatingFileHandler(
            LOG_FILE, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)

        console_handler = logging.StreamHandler(_console_stream())
        console_handler.setFormatter(formatter)
        console_handler.setLevel(level)

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)
        logger.setLevel(level)
        logger.propagate = False

    return logger
