"""Logging setup for the command line."""

import logging

from rich.logging import RichHandler

from mineraltax.config import LOG_LEVEL


def configure_logging(level: str | int | None = None) -> None:
    """Route the package loggers through rich. Safe to call more than once."""
    level = level or LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger("mineraltax")
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.addHandler(RichHandler(show_path=False, rich_tracebacks=True))
    root.setLevel(level)
