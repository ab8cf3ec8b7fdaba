"""
Logging configuration

Every module logger lives under the "helpdesk" logger, which owns the one
stdout handler. Client libraries that log each HTTP call are turned down to
WARNING so Jira retries and Supabase queries do not flood the output.
"""
import logging
import sys
from typing import Optional

from helpdesk.config import get_settings

PACKAGE_LOGGER = "helpdesk"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def _resolve_level(level: Optional[str]) -> int:
    return getattr(logging, (level or "").upper(), logging.INFO)


def setup_logger(name: str = PACKAGE_LOGGER, level: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger and return the logger for `name`

    Safe to call repeatedly: the handler is attached once.

    Args:
        name: Logger name (usually __name__)
        level: Overrides LOG_LEVEL from settings

    Returns:
        Logger instance
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(_resolve_level(level or get_settings().log_level))

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        package_logger.addHandler(handler)
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    return logging.getLogger(name)


def get_logger(name: str) -> logging.Logger:
    return setup_logger(name)
