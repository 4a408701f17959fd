"""Logging setup for the procurement platform.

The API configures the ``procurement`` logger once at startup; module
loggers (``procurement.core.approval.service``, ``procurement.access``...)
inherit its handlers. Timestamps are ISO 8601 in UTC.
"""

import logging
import logging.handlers
import os
import time
from typing import List, Optional

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_FORMAT = "%(asctime)sZ %(levelname)-7s %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


class UTCFormatter(logging.Formatter):
    converter = time.gmtime


def _handlers(
    name: str,
    formatter: logging.Formatter,
    log_dir: str,
    file_logging: bool,
    console_logging: bool,
    max_bytes: int,
    backup_count: int,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                os.path.join(log_dir, f"{name}.log"),
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
        )
    if console_logging:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logger(
    name: str,
    log_dir: str = "logs",
    level: str = "INFO",
    log_format: Optional[str] = None,
    file_logging: bool = False,
    console_logging: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure and return the logger called ``name``.

    Calling it again only updates the level, so repeated app startups
    (tests create one per client) never stack handlers.

    Raises:
        ValueError: ``level`` is not a standard level name
    """
    level_name = level.upper()
    if level_name not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of: {', '.join(LOG_LEVELS)}")

    logger = logging.getLogger(name)
    logger.setLevel(level_name)
    if logger.handlers:
        return logger

    formatter = UTCFormatter(log_format or DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
    for handler in _handlers(name, formatter, log_dir, file_logging, console_logging, max_bytes, backup_count):
        logger.addHandler(handler)
    return logger


def redact_token(token: Optional[str]) -> Optional[str]:
    """Shorten a bearer secret to a prefix safe for logs and audit payloads."""
    if not token:
        return token
    return token[:8] + "..."
