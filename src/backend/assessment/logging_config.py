"""
Logging configuration for the assessment backend.

Only event names, counts and status codes are logged. Credentials, prompts,
company names and tax identifiers must never reach a log record.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure the root logger with a single stdout handler.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)

    Returns:
        The configured root logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # requests/urllib3 log full URLs and headers at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return root
