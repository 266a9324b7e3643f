"""Logging setup for counterinfo."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler

from counterinfo.config import LoggingConfig

LOGGER_NAME = "counterinfo"
LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Configure the package logger.

    Logs go to a rotating file when one is configured, to stderr otherwise.

    Args:
        config: Logging settings. Defaults to LoggingConfig().

    Returns:
        The configured "counterinfo" logger.
    """
    if config is None:
        config = LoggingConfig()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.level_number)

    # Avoid adding multiple handlers if re-initialized
    if not logger.handlers:
        if config.file:
            handler: logging.Handler = RotatingFileHandler(
                config.file, maxBytes=config.max_bytes, backupCount=config.backup_count
            )
        else:
            handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger
