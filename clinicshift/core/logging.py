"""
logging setup

one formatter, a console handler, and a file handler when log_file is set.
call get_logger(__name__) at the top of a module and use that.
"""

from __future__ import annotations

import logging

from clinicshift.core.config import settings


formatter = logging.Formatter(
    fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def _handlers() -> list[logging.Handler]:
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    if settings.log_file:
        file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    return handlers


def get_logger(name: str = "clinicshift") -> logging.Logger:
    """Return a configured logger instance."""
    logger = logging.getLogger(name)
    logger.setLevel(settings.log_level.upper())

    # avoid duplicate handlers if called multiple times
    if not logger.handlers:
        for handler in _handlers():
            logger.addHandler(handler)

    return logger
