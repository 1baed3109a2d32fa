"""Minimal logging helpers for the project."""

from __future__ import annotations

import logging

DEFAULT_FORMAT = "%(levelname)s:%(name)s:%(message)s"


def get_logger(name: str = "periodogram", level: int | str = logging.INFO, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Return a configured :class:`logging.Logger` instance.

    A new ``StreamHandler`` is added only once per-logger to avoid
    duplicate log lines when calling this function multiple times.
    ``level`` may be a numeric level or a level name such as ``"DEBUG"``.
    """

    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
