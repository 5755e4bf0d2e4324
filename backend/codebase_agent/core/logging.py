"""Loguru sink configuration, applied once at application start."""

from __future__ import annotations

import sys

from loguru import logger

from codebase_agent.config import Settings
from codebase_agent.utils.exceptions import ConfigurationError

_LOG_FORMATS = ("text", "json")

_TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(settings: Settings) -> None:
    log_format = settings.log_format.lower()
    if log_format not in _LOG_FORMATS:
        raise ConfigurationError(f"LOG_FORMAT must be one of {_LOG_FORMATS}, got {settings.log_format!r}")

    logger.remove()
    serialize = log_format == "json"
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        serialize=serialize,
        format=_TEXT_FORMAT,
        backtrace=settings.debug,
        diagnose=settings.debug,
    )
    if settings.log_file:
        logger.add(
            settings.log_file,
            level=settings.log_level.upper(),
            serialize=serialize,
            rotation="10 MB",
            retention=5,
            enqueue=True,
        )
