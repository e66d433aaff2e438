"""Logging configuration for CLI runs.

Library modules only create loggers; handlers are installed here, once,
by the command-line entry points.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str | int = "INFO", *, console: Console | None = None) -> None:
    """Route ``scancache`` log records through a Rich handler.

    Parameters
    ----------
    level:
        Level name or number.  ``DEBUG`` shows every cache and download
        decision; ``INFO`` keeps output to the one-line summaries.
    console:
        Console to render on; defaults to stderr.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("scancache")
    for existing in list(package_logger.handlers):
        if isinstance(existing, RichHandler):
            package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
