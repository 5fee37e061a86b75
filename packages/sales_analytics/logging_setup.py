"""Logging for the ``sales_analytics`` logger tree.

Every module logs under the package logger, ``sales_analytics``:

    sales_analytics
    ├── sales_analytics.cache         load start/finish, cache hits, clears
    ├── sales_analytics.sources       download sizes, fallback use
    ├── sales_analytics.decompress    compressed/decompressed sizes (DEBUG)
    ├── sales_analytics.csv_io        record counts (DEBUG)
    └── sales_analytics.verification  chart/record total comparisons

Library code only ever calls :func:`get_logger` and stays silent until an
entrypoint (the CLI, or a host application) calls :func:`configure_logging`.
The level is taken from the explicit argument, then from
``SALES_ANALYTICS_LOG_LEVEL``, then defaults to INFO.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "sales_analytics"
LEVEL_ENV_VAR = "SALES_ANALYTICS_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Name given to the handler installed by ``configure_logging``.
_HANDLER_NAME = "sales_analytics.stream"


def _level_from_text(text: str) -> int | None:
    value = text.strip().upper()
    if not value:
        return None
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else None


def resolve_level(level: int | str | None = None) -> int:
    """Return the numeric level for ``level``.

    ``level`` may be an ``int`` or a level name / numeric string. When it is
    ``None`` or unrecognised, ``SALES_ANALYTICS_LOG_LEVEL`` is consulted, and
    INFO is used when that is unset or unrecognised too.
    """

    if isinstance(level, int):
        return level
    if isinstance(level, str):
        parsed = _level_from_text(level)
        if parsed is not None:
            return parsed
    env_level = _level_from_text(os.getenv(LEVEL_ENV_VAR, ""))
    return env_level if env_level is not None else logging.INFO


def _installed_handler(logger: logging.Logger) -> logging.Handler | None:
    for handler in logger.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return handler
    return None


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Send the ``sales_analytics`` tree to ``stream`` (stderr by default).

    Installs one handler on the package logger and stops propagation to the
    root logger. Calling it again keeps the existing handler and only applies
    the new level.
    """

    resolved = resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolved)

    handler = _installed_handler(logger)
    if handler is not None:
        handler.setLevel(resolved)
        return logger

    for existing in list(logger.handlers):
        if isinstance(existing, logging.NullHandler):
            logger.removeHandler(existing)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` inside the ``sales_analytics`` tree.

    Modules pass ``__name__``; a bare suffix such as ``"cache"`` is placed
    under the package logger as well. Until :func:`configure_logging` runs,
    the package logger carries a ``NullHandler`` so library use stays quiet.
    """

    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


__all__ = [
    "PACKAGE_LOGGER",
    "LEVEL_ENV_VAR",
    "configure_logging",
    "get_logger",
    "resolve_level",
]
