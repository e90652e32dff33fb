"""Logging setup for the command line entry points."""

from __future__ import annotations

import logging
import os
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT: Final[str] = "%H:%M:%S"

# Libraries that log every request or statement at INFO.
_CHATTY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "sqlalchemy.engine", "alembic")


def level_from_env(default: int = logging.INFO) -> int:
    """Level named by ``GIGQUEUE_LOG_LEVEL`` (``DEBUG``, ``warning``...), else ``default``."""

    name = (os.getenv("GIGQUEUE_LOG_LEVEL") or "").strip().upper()
    level = logging.getLevelNamesMapping().get(name)
    return default if level is None else level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Configure the root logger for CLI output.

    ``level`` defaults to ``GIGQUEUE_LOG_LEVEL`` or INFO. Third-party request
    and SQL loggers stay at WARNING unless debugging.
    """

    effective = level if level is not None else level_from_env()
    logging.basicConfig(level=effective, format=LOG_FORMAT, datefmt=DATE_FORMAT, force=force)
    quiet = effective if effective <= logging.DEBUG else max(effective, logging.WARNING)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)
