"""Process logging for the learning plans service and its scripts."""

import logging
import os
from logging.config import dictConfig
from typing import Any, Dict, Optional

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
AUDIT_LOGGER = "learning_plans.events"


def build_logging_config(level: str, *, audit_level: Optional[str] = None, debug_sql: bool = False) -> Dict[str, Any]:
    """Return the ``dictConfig`` mapping for the given levels.

    Triggered events are logged under ``learning_plans.events``; its level can
    be raised or lowered without touching the rest of the service.
    """
    loggers: Dict[str, Dict[str, Any]] = {
        AUDIT_LOGGER: {"level": (audit_level or level).upper()},
    }
    if debug_sql:
        loggers["sqlalchemy.engine"] = {"level": "INFO"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": DEFAULT_LOG_FORMAT}},
        "handlers": {"default": {"class": "logging.StreamHandler", "formatter": "default"}},
        "loggers": loggers,
        "root": {"handlers": ["default"], "level": level.upper()},
    }


def configure_logging() -> None:
    """Configure process logging from ``LP_LOG_LEVEL``, ``LP_AUDIT_LOG_LEVEL`` and ``LP_DEBUG_SQL``."""
    config = build_logging_config(
        os.getenv("LP_LOG_LEVEL", "INFO"),
        audit_level=os.getenv("LP_AUDIT_LOG_LEVEL"),
        debug_sql=os.getenv("LP_DEBUG_SQL", "0") == "1",
    )
    dictConfig(config)
    logging.getLogger(__name__).debug("Logging configured at %s", config["root"]["level"])


__all__ = ["AUDIT_LOGGER", "DEFAULT_LOG_FORMAT", "build_logging_config", "configure_logging"]
