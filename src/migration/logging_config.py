"""
Centralized logging configuration for the migration engine.

Every module gets its logger from ``create_logger(__name__)``. The level
comes from ``MIGRATION_LOG_LEVEL``, read from the environment or from a
``.env`` file in the working directory (or one of its parents).
"""

import logging
import os
import sys
from typing import Optional, Union

import colorlog
from dotenv import find_dotenv, load_dotenv

# First package module to be imported: load .env before any setting is read.
# Real environment variables win.
load_dotenv(find_dotenv(usecwd=True), override=False)

FALLBACK_LOG_LEVEL = "INFO"
DEFAULT_LOG_LEVEL = os.getenv("MIGRATION_LOG_LEVEL", FALLBACK_LOG_LEVEL).upper()

CONSOLE_FORMAT = "%(log_color)s[%(levelname)s]%(reset)s %(blue)s[%(name)s]%(reset)s %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def resolve_log_level(log_level: Union[int, str]) -> Union[int, str]:
    """
    Return ``log_level`` if logging knows it, INFO otherwise.

    Unknown names are reported by ``config.validate_config``; loggers
    created before validation runs must not fail on them.
    """
    if isinstance(log_level, int):
        return log_level
    level = str(log_level).upper()
    if isinstance(logging.getLevelName(level), int):
        return level
    return FALLBACK_LOG_LEVEL


def create_logger(
    name: Optional[str] = None,
    log_level: Union[int, str] = DEFAULT_LOG_LEVEL,
    log_dir: Optional[str] = None,
    log_file: Optional[str] = None,
):
    """
    Create a color-coded console logger with optional file logging.

    :param name: Name of the logger (typically __name__)
    :param log_level: Logging level (default: MIGRATION_LOG_LEVEL or INFO)
    :param log_dir: Directory to store log files (optional)
    :param log_file: Specific log file name (optional)
    :return: Configured logger instance
    """
    level = resolve_log_level(log_level)

    logger = colorlog.getLogger(name or __name__)
    logger.setLevel(level)
    logger.propagate = False

    # Recreating a logger replaces its handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = colorlog.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(colorlog.ColoredFormatter(CONSOLE_FORMAT, log_colors=LOG_COLORS))
    logger.addHandler(console_handler)

    if log_dir or log_file:
        log_file = log_file or f"{name or 'migration'}.log"
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            log_file = os.path.join(log_dir, log_file)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def log_exception(logger, e, context=None):
    """
    Log the exception that stopped a migration run as a critical block.

    :param logger: Logger instance
    :param e: Exception object
    :param context: Optional description of where it happened
    """
    logger.critical("🚨 MIGRATION FAILED 🚨")
    logger.critical(f"Error Type: {type(e).__name__}")
    logger.critical(f"Error Details: {e}")

    if context:
        logger.critical(f"Context: {context}")

    logger.critical("Troubleshooting:")
    logger.critical("  1. Check the failing step reported above")
    logger.critical("  2. Verify source and destination availability")
    logger.critical("  3. Inspect what was already pushed before re-running")
    logger.critical("  4. Re-run the migration once the cause is fixed")
