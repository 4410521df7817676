# app/core/logging_config.py

import logging
import sys

from loguru import logger

from app.config.settings import settings

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[logger_name]}</cyan> - "
    "<level>{message}</level>"
)

# Libraries that log every request or heartbeat at INFO
_NOISY_LOGGERS = ("uvicorn.access", "pymongo", "pymongo.serverSelection", "pymongo.connection")


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru, keeping the original logger name."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.bind(logger_name=record.name).opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging() -> None:
    """
    Route all application logging through loguru.

    Modules keep using ``logging.getLogger("<name>")``; records are
    intercepted and written by a single loguru sink. Production gets one
    JSON object per line, everything else a colored console format.
    """
    logger.remove()
    logger.configure(extra={"logger_name": "app"})

    level = settings.LOG_LEVEL.upper()

    if settings.ENVIRONMENT.lower() == "production":
        logger.add(sys.stdout, level=level, serialize=True, backtrace=False, diagnose=False)
    else:
        logger.add(
            sys.stdout,
            format=_CONSOLE_FORMAT,
            level=level,
            colorize=True,
            backtrace=False,
            diagnose=settings.DEBUG,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=logging.getLevelName(level), force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers = [InterceptHandler()]
        uv_logger.propagate = False

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
