"""Logging setup for the waterfall CLI.

Library modules only create loggers with ``logging.getLogger(__name__)``;
handlers are installed here, once, by the application entry point.
"""

from __future__ import annotations

import logging
import sys

_loggers_configured: bool = False


def configure_logging(
    level: int | str = logging.WARNING,
    verbose: bool = False,
) -> None:
    """Configure logging for the whole application.

    Args:
        level: Base logging level (e.g. ``logging.INFO`` or ``"INFO"``).
        verbose: If True, sets level to DEBUG.
    """
    global _loggers_configured

    if verbose:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=_loggers_configured,
    )
    _loggers_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger, configuring defaults first if nobody has yet."""
    if not _loggers_configured:
        configure_logging()
    return logging.getLogger(name)
