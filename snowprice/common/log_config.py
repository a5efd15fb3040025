"""
Logging Configuration

Configures logging for the snowprice package. Console output goes to
stderr so stdout stays clean for reports; an optional log file receives
the same records with timestamps, which is useful for unattended refreshes.
"""

from __future__ import annotations

import logging
import sys

PACKAGE_LOGGER = "snowprice"

_CONSOLE_FORMAT = "%(levelname)-8s %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: str | None = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        verbose: If True, set level to DEBUG
        quiet: If True, set level to WARNING (ignored when verbose is set)
        log_file: Optional path; records are appended there as well

    Returns:
        The configured package logger
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Re-running setup must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger
