"""
Logging configuration for command-line use

Library modules only create module loggers; the CLI and the example
scripts call setup_logging() once at start-up.
"""

import logging
import sys

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

PACKAGE_LOGGER = __name__.rpartition(".")[0]


def setup_logging(log_level: str = "WARNING") -> logging.Logger:
    """
    Setup logging for the CLI

    Records go to stderr so stdout carries only the JSON result. Only the
    package's own loggers follow log_level; everything else stays at
    WARNING.

    Args:
        log_level: Level name, case-insensitive

    Returns:
        The package logger

    Raises:
        ValueError: log_level is not a known level name
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    logging.basicConfig(
        level=logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stderr
    )
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    return package_logger
