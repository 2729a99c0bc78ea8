"""Application and error log files for the crawler."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "FATAL": logging.CRITICAL,
    "CRITICAL": logging.CRITICAL,
}

# Marker attribute so repeated configuration replaces our own handlers only
_HANDLER_TAG = "_shopcrawl_handler"


def convert_level(level: Any) -> int:
    """Map a level name to a logging constant, DEBUG when unknown."""
    return _LEVELS.get(str(level).upper(), logging.DEBUG)


def configure_logging(
    settings: Optional[Mapping[str, Any]],
    *,
    console: bool = False,
    logger_name: str = "shopcrawl",
) -> Optional[logging.Logger]:
    """Install app.log / error.log handlers from a `logging` config section.

    Parameters
    ----------
    settings : mapping, optional
        Keys: directory (default "logs"), level (default "DEBUG") and
        files.application_log / files.error_log
    console : bool
        Also stream records to stdout
    logger_name : str
        Logger to configure

    Returns
    -------
    logging.Logger or None
        Configured logger, or None when settings is empty
    """
    if not settings and not console:
        return None
    settings = settings or {}

    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            logger.removeHandler(handler)
            handler.close()

    level = convert_level(settings.get("level", "DEBUG"))
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = []
    if settings:
        directory = Path(settings.get("directory") or "logs")
        directory.mkdir(parents=True, exist_ok=True)
        files = settings.get("files") or {}

        app_handler = logging.FileHandler(directory / (files.get("application_log") or "app.log"), encoding="utf-8")
        app_handler.setLevel(level)
        handlers.append(app_handler)

        error_handler = logging.FileHandler(directory / (files.get("error_log") or "error.log"), encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        handlers.append(error_handler)

    if console:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setLevel(level)
        handlers.append(stream_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_TAG, True)
        logger.addHandler(handler)

    logger.debug("Logging configured (level=%s)", logging.getLevelName(level))
    return logger
