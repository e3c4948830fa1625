"""Shared logging helpers for graphpatch."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(*, verbose: bool = False, force: bool = False) -> None:
    """Set up root logging for command-line use.

    INFO reports one line per patch run; ``verbose`` switches to DEBUG, which
    traces every operation, reference population and persisted document.
    SQLAlchemy's engine logger stays at WARNING unless echo is configured.
    """

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    logging.getLogger().setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
