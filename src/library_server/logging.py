"""Logging configuration for the library server.

Application code logs through loguru directly. The libraries underneath the
server (uvicorn, strawberry, SQLAlchemy) log through the standard library;
their records are forwarded into loguru so everything ends up in one stream.
"""

import logging
import sys

from loguru import logger

# Stdlib loggers of the libraries the server runs on
FORWARDED_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "strawberry",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
)

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Forward standard logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Attribute the message to the library call site, not to the logging module
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(log_level: str) -> None:
    """Send all server logging to stderr at the given level.

    SQL statements only appear when the engine is created with ``echo``
    (``LIBRARY_SERVER_SQL_LOG``); they are forwarded like any other record.

    Args:
        log_level: TRACE, DEBUG, INFO, WARNING or ERROR
    """
    level = log_level.upper()

    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, colorize=True)

    # The standard library has no TRACE level
    std_level = logging.DEBUG if level == "TRACE" else level

    handler = InterceptHandler()
    logging.basicConfig(handlers=[handler], level=0, force=True)
    for name in FORWARDED_LOGGERS:
        forwarded = logging.getLogger(name)
        forwarded.handlers = [handler]
        forwarded.propagate = False
        if not name.startswith("sqlalchemy"):
            forwarded.setLevel(std_level)

    logger.debug(f"Logging configured at {level}")
