"""
Loguru configuration shared by the API and the Streamlit frontend.

Uvicorn and the database driver log through the standard library, so their
records are routed into loguru as well.
"""

import logging
import sys

from loguru import logger

from .config import settings


class InterceptHandler(logging.Handler):
    """Forward standard-library log records to loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str | None = None):
    """
    Configure the global loguru logger and return it.

    Dev environments get human-readable lines; anything else gets one JSON
    object per line so log shippers can index the keyword context.
    """
    level = (level or settings.log_level).upper()

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        serialize=settings.app_env != "dev",
        backtrace=False,
        diagnose=False,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "pymongo"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False
    # pymongo is chatty at DEBUG (heartbeats, pool events)
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    return logger
