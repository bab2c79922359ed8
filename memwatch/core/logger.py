from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOGGER_NAME = "memwatch"
LOG_FILE = "memwatch.log"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
STDERR_FORMAT = "%(levelname)s: %(message)s"


def setup_logging(log_dir: str = "logs", *, level: str = "INFO", max_bytes: int = 1_000_000, backup_count: int = 5) -> logging.Logger:
    """
    Configure the `memwatch` diagnostics logger: a rotating file in `log_dir` plus stderr.

    Safe to call repeatedly. A second call with another `log_dir` moves the file
    handler there instead of adding a second one.
    """
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.abspath(os.path.join(log_dir, LOG_FILE))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    logger.propagate = False

    current = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    for h in current:
        if h.baseFilename != log_path:
            logger.removeHandler(h)
            h.close()
    if not any(h.baseFilename == log_path for h in current):
        logger.addHandler(_file_handler(log_path, max_bytes=max_bytes, backup_count=backup_count))

    if not any(_is_stderr_handler(h) for h in logger.handlers):
        logger.addHandler(_stderr_handler())
    return logger


def _file_handler(path: str, *, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    h = RotatingFileHandler(path, maxBytes=int(max_bytes), backupCount=int(backup_count), encoding="utf-8")
    h.setFormatter(logging.Formatter(FILE_FORMAT))
    return h


def _stderr_handler() -> logging.StreamHandler:
    # stdout belongs to the event logger
    sh = logging.StreamHandler(sys.stderr)
    sh.setFormatter(logging.Formatter(STDERR_FORMAT))
    return sh


def _is_stderr_handler(h: logging.Handler) -> bool:
    return isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
