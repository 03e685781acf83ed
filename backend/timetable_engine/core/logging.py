from __future__ import annotations

import logging
import sys

from timetable_engine.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a stdout handler on the root logger for scripts and workers.

    Library modules only call ``logging.getLogger(__name__)``; the process entry
    point decides where records go.
    """
    resolved = (level or get_settings().log_level).upper()
    logging.basicConfig(
        format=LOG_FORMAT,
        stream=sys.stdout,
        level=getattr(logging, resolved, logging.INFO),
        force=True,
    )
    if not get_settings().sql_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
