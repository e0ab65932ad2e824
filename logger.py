"""
Loguru setup shared by the server and the client controller.

Env
---
LOG_LEVEL=INFO|DEBUG|WARNING|ERROR (default: INFO)
"""

import logging
import os
import sys

from loguru import logger

__all__ = ["logger", "configure_logging"]

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level:<8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Route standard logging records (werkzeug, sqlalchemy) into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(level=None):
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    logger.remove()
    logger.add(sys.stderr, level=level, format=_FORMAT, backtrace=False, diagnose=False)

    for name in ("werkzeug", "sqlalchemy"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False
    # SQL echo stays off unless explicitly asked for
    logging.getLogger("sqlalchemy").setLevel(logging.DEBUG if level == "DEBUG" else logging.WARNING)
    return logger
