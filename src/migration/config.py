"""Configuration module for engine settings and environment variables.

This module manages configuration settings read from the environment
(optionally through a ``.env`` file) for the migration engine.
"""

import logging
import os
import re

from dotenv import find_dotenv, load_dotenv

from migration.exceptions import ConfigurationError
from migration.logging_config import create_logger

# Already done by logging_config on first import; repeated so a reload
# picks up a changed .env
load_dotenv(find_dotenv(usecwd=True), override=False)

# get the local root directory
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

# "package.module:callable" returning the registry
MIGRATION_REGISTRY = os.getenv("MIGRATION_REGISTRY", "")

DEFAULT_BATCH_SIZE = 1000
BATCH_SIZE = os.getenv("MIGRATION_BATCH_SIZE", str(DEFAULT_BATCH_SIZE))

LOG_LEVEL = os.getenv("MIGRATION_LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("MIGRATION_LOG_DIR") or None

# Run audit log
TRACKING_ENABLED = os.getenv("MIGRATION_TRACKING_ENABLED", "false").lower() == "true"
TRACKING_DB_PATH = os.getenv(
    "MIGRATION_TRACKING_DB", os.path.join(ROOT_DIR, "data", "migration_runs.db")
)

REGISTRY_PATH_PATTERN = re.compile(
    r"^[A-Za-z_][\w]*(\.[A-Za-z_][\w]*)*:[A-Za-z_][\w]*(\.[A-Za-z_][\w]*)*$"
)

logger = create_logger(__name__)


def get_batch_size() -> int:
    """
    Return the configured default batch size.

    :raises ConfigurationError: If MIGRATION_BATCH_SIZE is not a positive integer
    """
    try:
        batch_size = int(BATCH_SIZE)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"MIGRATION_BATCH_SIZE must be an integer, got {BATCH_SIZE!r}"
        )

    if batch_size <= 0:
        raise ConfigurationError(
            f"MIGRATION_BATCH_SIZE must be positive, got {batch_size}"
        )
    return batch_size


def validate_config():
    """
    Validate critical configuration parameters.
    Raises ConfigurationError if any config value is invalid.

    :raises ConfigurationError: If configuration is invalid
    """
    get_batch_size()

    if not isinstance(logging.getLevelName(LOG_LEVEL), int):
        raise ConfigurationError(f"Unknown log level: {LOG_LEVEL}")

    if MIGRATION_REGISTRY and not REGISTRY_PATH_PATTERN.match(MIGRATION_REGISTRY):
        raise ConfigurationError(
            f"MIGRATION_REGISTRY must look like 'package.module:factory', "
            f"got {MIGRATION_REGISTRY!r}"
        )

    if LOG_DIR:
        try:
            os.makedirs(LOG_DIR, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Unable to create log directory {LOG_DIR}: {e}")

    if TRACKING_ENABLED:
        if not TRACKING_DB_PATH:
            raise ConfigurationError(
                "Run tracking is enabled but MIGRATION_TRACKING_DB is empty"
            )
        try:
            db_dir = os.path.dirname(TRACKING_DB_PATH)
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Unable to create tracking database directory at {db_dir}: {e}"
            )

    logger.debug("Configuration validation successful")
