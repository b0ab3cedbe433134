"""Logging configuration helpers for the trivia service."""

from __future__ import annotations

import logging
from logging import Logger
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: int = logging.INFO, log_file: Path | None = None) -> Logger:
    """Configure console logging, plus an optional log file, and return the package logger.

    Per-request uvicorn access lines are only shown at DEBUG level.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger = logging.getLogger("trivia_app")
    logger.setLevel(level)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        resolved = str(log_file.resolve())
        already_attached = any(
            isinstance(handler, logging.FileHandler) and handler.baseFilename == resolved
            for handler in logger.handlers
        )
        if not already_attached:
            handler = logging.FileHandler(log_file, encoding="utf-8")
            handler.setLevel(level)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)
    return logger
