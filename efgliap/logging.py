"""
Rich-coloured logging for the efgliap package.

Library modules only create child loggers:

    >>> from efgliap.logging import get_logger
    >>> logger = get_logger(__name__)

Handlers are attached once, by the program, through ``setup_logging``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "efgliap"


class FlushingFileHandler(logging.FileHandler):
    """FileHandler that flushes after every record."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            super().emit(record)
            if self.stream:
                self.stream.flush()
        except Exception:
            self.handleError(record)


def setup_logging(log_level: str = "INFO", log_file: Path | str | None = None) -> logging.Logger:
    """Attach a RichHandler (and optionally a file handler) to the package logger.

    Args:
        log_level: Console level name, e.g. "DEBUG".
        log_file:  Optional path; receives every record at DEBUG level.

    Returns:
        The configured ``efgliap`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(file=sys.stderr),
        markup=True,
        rich_tracebacks=True,
        show_path=False,
    )
    console_handler.setLevel(getattr(logging, log_level.upper()))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = FlushingFileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Return ``name``'s logger; module names under efgliap inherit its handlers."""
    return logging.getLogger(name)
