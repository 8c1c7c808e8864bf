"""
Logging configuration for scripts and tests.

Library modules only call logging.getLogger(__name__); this module wires
handlers for programs that want console/file output.

Usage:
    from particle_engine.utils.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Running filter with %d particles", n_particles)

Configuration:
    - LOG_LEVEL environment variable controls verbosity (DEBUG, INFO, WARNING, ERROR)
    - Default level is INFO
    - Logs to console, and to LOG_FILE if set
"""

import logging
import os
import sys
from typing import Optional


DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logging_configured = False


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> None:
    """
    Configure the root logger once, replacing any handlers already on it.

    Parameters
    ----------
    level : str, optional
        DEBUG, INFO, WARNING, ERROR or CRITICAL.
        Defaults to the LOG_LEVEL environment variable or INFO.
    log_file : str, optional
        Path to a log file. Defaults to the LOG_FILE environment variable.
    format_string : str, optional
        Custom format string. Defaults to DEFAULT_FORMAT.
    """
    global _logging_configured

    if _logging_configured:
        return

    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if format_string is None:
        format_string = DEFAULT_FORMAT

    formatter = logging.Formatter(format_string, datefmt=DEFAULT_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file is None:
        log_file = os.environ.get("LOG_FILE")

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger, configuring logging on first use.

    Parameters
    ----------
    name : str
        Logger name (typically __name__).

    Returns
    -------
    logging.Logger
    """
    if not _logging_configured:
        setup_logging()

    return logging.getLogger(name)


def set_level(level: str) -> None:
    """
    Change the logging level at runtime.

    Parameters
    ----------
    level : str
        New logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger().setLevel(numeric_level)
    for handler in logging.getLogger().handlers:
        handler.setLevel(numeric_level)
