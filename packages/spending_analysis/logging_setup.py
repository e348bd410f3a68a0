"""Logging configuration for the ``spending_analysis`` package.

Public helpers:

- ``configure_logging(...)``: attach one ``StreamHandler`` to the package
  logger (``"spending_analysis"``). Host applications call this once at
  startup; calling it again is a no-op unless ``force=True``.
- ``get_logger(name)``: return a named logger. Until the host configures
  logging, the package logger carries a ``NullHandler`` so library use stays
  silent.
- ``log_stage(logger, stage)``: context manager that records how long one
  pipeline stage took, at DEBUG level.

Modules inside the package never add handlers of their own; they call
``get_logger("spending_analysis.<module>")``.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO

_PKG_LOGGER_NAME = "spending_analysis"
_LEVEL_ENV = "SPENDING_ANALYSIS_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    resolved = logging.getLevelName(name)
    # getLevelName returns "Level X" strings for unknown names
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
    force: bool = False,
) -> None:
    """Attach the package's single stream handler.

    Parameters
    ----------
    level:
        ``int`` or level name. ``None`` reads ``SPENDING_ANALYSIS_LOG_LEVEL``
        and falls back to ``INFO``.
    fmt:
        Optional format string; defaults to
        ``"%(asctime)s %(name)s %(levelname)s %(message)s"``.
    stream:
        Destination stream (``sys.stderr`` by default).
    force:
        Replace a handler installed by an earlier call.
    """

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is not None:
        if not force:
            return
        logger.removeHandler(_handler)

    for existing in list(logger.handlers):
        if isinstance(existing, logging.NullHandler):
            logger.removeHandler(existing)

    resolved = _resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False
    _handler = handler


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)`` with a silent default for the package."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


@contextmanager
def log_stage(logger: logging.Logger, stage: str) -> Iterator[None]:
    """Log the wall-clock duration of ``stage`` at DEBUG level."""

    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.debug("stage %s finished in %.1f ms", stage, elapsed_ms)


__all__ = ["configure_logging", "get_logger", "log_stage"]
