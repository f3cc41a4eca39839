"""
Logging setup for the command line.

Console output goes through rich; a rotating file in the data directory keeps
the history of past runs for debugging scraping problems.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.logging import RichHandler

from deadlinesync.config import Settings

FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 3

_HANDLER_MARK = "_deadlinesync_handler"


def setup_logging(settings: Settings, verbose: bool = False) -> None:
    """
    Attach console + file handlers to the package logger.

    Safe to call more than once (handlers from an earlier call are replaced).
    """
    root = logging.getLogger("deadlinesync")
    root.setLevel(logging.DEBUG)
    root.propagate = False

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)
            handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=verbose,
    )
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    setattr(console_handler, _HANDLER_MARK, True)
    root.addHandler(console_handler)

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        settings.log_path,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    setattr(file_handler, _HANDLER_MARK, True)
    root.addHandler(file_handler)
