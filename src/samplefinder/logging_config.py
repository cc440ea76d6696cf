"""Logging setup: console output plus an optional rotating log file."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union


def setup_logging(level: Union[str, int] = "INFO", log_file: Optional[str] = None) -> None:
    """Configure the root logger.

    Console output goes to stderr so it never interleaves with a stdio
    transport. When ``log_file`` is given, a rotating file handler (10MB,
    5 backups) records everything at DEBUG.
    """
    if isinstance(level, str):
        console_level = logging.getLevelName(level.upper())
        if not isinstance(console_level, int):
            console_level = logging.INFO
    else:
        console_level = level

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
            )
        )
        root_logger.addHandler(file_handler)

    # SQLAlchemy echoes through its own logger; keep it quiet unless asked
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
