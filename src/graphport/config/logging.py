"""Root logger setup for the graphport CLI."""

from __future__ import annotations

import logging
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
SQL_LOGGER: Final[str] = "sqlalchemy.engine"


def configure_logging(
    *,
    level: int = logging.INFO,
    sql_level: int | None = None,
    force: bool = False,
) -> None:
    """Configure the root logger with a terse format suitable for CLI output.

    ``sql_level`` sets the SQLAlchemy engine logger on its own, so statements can
    be traced (``logging.INFO``) without raising the level of the codec loggers.
    Pass ``force=True`` to reconfigure an already configured root logger.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    if sql_level is not None:
        logging.getLogger(SQL_LOGGER).setLevel(sql_level)
