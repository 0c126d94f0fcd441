"""Root logger setup for the printconf entry points."""

from __future__ import annotations

import logging

from .env import log_level_env_var

LOG_LEVEL_ENV = "PRINTCONF_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(*, level: int | None = None, force: bool = False) -> int:
    """Configure the root logger and return the level that was applied.

    An explicit ``level`` wins; otherwise ``PRINTCONF_LOG_LEVEL`` is consulted and
    INFO is the fallback.
    """

    resolved = level if level is not None else log_level_env_var(LOG_LEVEL_ENV, logging.INFO)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    return resolved
