"""Logging setup for scripts and background workers."""

from __future__ import annotations

import logging

from topic_pulse.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a root handler using the configured log level.

    Library modules only create their own loggers; entry points call this once.
    """
    resolved = (level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, resolved, logging.INFO), format=LOG_FORMAT)
    if settings.sql_debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
