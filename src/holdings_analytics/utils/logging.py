"""Logging helpers for CLI diagnostics and domain reporter callbacks."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from rich.logging import RichHandler

_LOGGER_CONFIGURED = False


def configure_logging(debug: bool = False, *, level: Optional[int] = None) -> None:
    """Configure process-wide logging with Rich handler."""
    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED:
        return

    resolved_level = level or (logging.DEBUG if debug else logging.INFO)
    logging.basicConfig(
        level=resolved_level,
        format="%(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=debug, show_path=debug)],
    )
    _LOGGER_CONFIGURED = True


def make_reporter(name: str, level: int = logging.INFO) -> Callable[[str], None]:
    """Adapt a named logger to the ``reporter(message)`` callback the domain services accept."""
    logger = logging.getLogger(name)

    def report(message: str) -> None:
        logger.log(level, message)

    return report
