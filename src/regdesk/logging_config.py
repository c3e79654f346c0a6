"""Logging setup for the regdesk API and its sheet sync worker"""

import logging
import sys
from typing import Optional

from regdesk.config import config

LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"

# Third-party loggers that are noisy at INFO: httpx logs every Sheets API
# request, sqlalchemy.engine echoes SQL
QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}


class InfoFilter(logging.Filter):
    """Let through INFO and DEBUG only"""

    def filter(self, record):
        return record.levelno < logging.WARNING


def setup_logging(log_level: Optional[str] = None):
    """
    Route INFO/DEBUG to stdout and WARNING/ERROR to stderr.

    Args:
        log_level: Level name; defaults to the configured ``log_level``
    """
    log_level = log_level or config.get("log_level", "INFO")
    level = getattr(logging, log_level.upper(), logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(InfoFilter())
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    # At DEBUG the Sheets API traffic is wanted too
    if level > logging.DEBUG:
        for name, quiet_level in QUIET_LOGGERS.items():
            logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
