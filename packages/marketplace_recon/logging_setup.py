"""Logging setup for the ``marketplace_recon`` package.

Library modules call ``get_logger("marketplace_recon.<module>")`` and never
attach handlers of their own. Entry points (the Typer CLI, the catalog
seeder) call :func:`configure_logging`, which installs one ``StreamHandler``
on the package logger. Calling it again swaps that handler out, so a
long-lived host can change level or format between imports without
duplicating output.

Environment
-----------
``MARKETPLACE_RECON_LOG_LEVEL``
    Level name or number used when no level is passed (default ``INFO``).
``MARKETPLACE_RECON_LOG_FORMAT``
    Format string used when no format is passed.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "marketplace_recon"
_LEVEL_ENV_VAR = "MARKETPLACE_RECON_LOG_LEVEL"
_FORMAT_ENV_VAR = "MARKETPLACE_RECON_LOG_FORMAT"

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_handler: logging.Handler | None = None


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or the env default) into a numeric level; unknown names are INFO."""

    if level is None:
        level = os.getenv(_LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> logging.Logger:
    """Send package log records to ``stream``; return the package logger.

    Replaces the handler installed by a previous call along with any
    placeholder ``NullHandler``.
    """

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if h is _handler or isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        logging.Formatter(fmt or os.getenv(_FORMAT_ENV_VAR) or DEFAULT_FORMAT)
    )
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    logger.propagate = False
    _handler = handler
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return logger ``name``; an unconfigured package logger gets a ``NullHandler``."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["DEFAULT_FORMAT", "configure_logging", "get_logger", "resolve_level"]
