"""
Logging configuration for the answer review pipeline.
Saves logs to the project logs/ folder with rotation.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Module-level logger cache
_loggers: dict = {}

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logs_dir() -> Path:
    """
    Get or create logs directory.

    ANSWER_REVIEW_LOG_DIR overrides the default ./logs; falls back to
    /tmp/logs when the directory is not writable.
    """
    logs_dir = Path(os.getenv("ANSWER_REVIEW_LOG_DIR", "logs"))

    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        logs_dir = Path("/tmp/logs")
        logs_dir.mkdir(parents=True, exist_ok=True)

    return logs_dir


def setup_logger(
    name: str,
    level: Optional[int] = None,
    log_to_console: bool = True,
    log_to_file: bool = True,
) -> logging.Logger:
    """
    Set up a logger with console and file handlers.

    Args:
        name: Logger name (typically the package name)
        level: Logging level (defaults to ANSWER_REVIEW_LOG_LEVEL or INFO)
        log_to_console: Whether to output to stderr
        log_to_file: Whether to output to logs/answer_review.log

    Returns:
        Configured logger
    """
    if level is None:
        env_level = os.getenv("ANSWER_REVIEW_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, env_level, logging.INFO)

    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_to_file:
        file_handler = RotatingFileHandler(
            get_logs_dir() / "answer_review.log",
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=5,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _loggers[name] = logger
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get an existing logger or create a basic one."""
    if name in _loggers:
        return _loggers[name]
    return setup_logger(name)
