"""Logging for the ``household_budget`` package.

Library modules obtain loggers with ``get_logger("household_budget.<module>")``
and never attach handlers. Until an entrypoint calls :func:`configure_logging`
the package logger carries only a ``NullHandler``, so importing the engine
into another application prints nothing.

The CLI calls :func:`configure_logging` once at startup. The level comes from
the ``level`` argument, else ``HOUSEHOLD_BUDGET_LOG_LEVEL``, else ``INFO``;
``--verbose`` reconfigures at ``DEBUG`` with ``force=True``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "household_budget"
_LEVEL_ENV = "HOUSEHOLD_BUDGET_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# The StreamHandler installed by configure_logging(), if any.
_HANDLER: logging.Handler | None = None


def _parse_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelNamesMapping().get(name)
    return numeric if numeric is not None else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
    force: bool = False,
) -> None:
    """Attach one ``StreamHandler`` to the package logger.

    Parameters
    ----------
    level:
        ``int`` or level name (``"DEBUG"``); see the module docstring for the
        fallback order.
    fmt:
        Format string, defaulting to ``"%(asctime)s %(name)s %(levelname)s %(message)s"``.
    stream:
        Destination of the handler (``sys.stderr``).
    force:
        Replace a handler installed by an earlier call instead of keeping it.
    """

    global _HANDLER
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _HANDLER is not None:
        if not force:
            return
        logger.removeHandler(_HANDLER)
        _HANDLER = None

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    _HANDLER = handler


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _HANDLER is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
