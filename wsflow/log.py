"""loguru setup for the ``wsflow`` command.

Diagnostics go to stderr and command output to stdout, so piping
``wsflow list`` never picks up log lines.  At the default ``WARNING`` level
only short ``level: message`` lines are printed; ``DEBUG`` (``--verbose``)
switches to a timestamped format with the call-site, which is where every
git invocation and reconciliation decision is reported.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from loguru import logger

_BRIEF_FORMAT = "<level>{level}</level>: {message}"
_DEBUG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class _InterceptHandler(logging.Handler):
    """Route stdlib ``logging`` records (asyncio, dependencies) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Map stdlib level name -> loguru level
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk the call stack so loguru reports the real call-site
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "WARNING", sink: TextIO | None = None) -> None:
    """Make loguru the only log sink.

    Safe to call more than once; each call replaces the previous handler.
    ``sink`` defaults to the *current* ``sys.stderr``.
    """
    level = level.upper()
    verbose = logger.level(level).no <= logger.level("DEBUG").no

    logger.remove()
    logger.add(
        sink or sys.stderr,
        level=level,
        format=_DEBUG_FORMAT if verbose else _BRIEF_FORMAT,
        backtrace=verbose,
        diagnose=False,
    )
    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    logger.debug("Logging initialised (level={})", level)
