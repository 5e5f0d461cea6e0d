from __future__ import annotations

import logging
import os
import sys

from vizgrid.config import RenderSettings


def get_logger(name: str, settings: RenderSettings | None = None) -> logging.Logger:
    """Return a logger with a stream handler attached once.

    Level comes from VIZGRID_LOG_LEVEL, then ``settings.log_level``, then WARNING.
    """
    level = settings.log_level if settings is not None else "WARNING"
    level = os.getenv("VIZGRID_LOG_LEVEL", level)

    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
        h = logging.StreamHandler(stream=sys.stderr)
        h.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(h)
    return logger
