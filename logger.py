"""
Logger configuration for Blog Post Translator

Handles logging setup: console output plus a per-run build log file
"""

import logging
import sys
from typing import Optional
from config import LOGGING_CONFIG

LOGGER_NAME = 'post_translator'


def setup_logger(log_file: Optional[str] = None) -> logging.Logger:
    """
    Creates and configures the logger with console and build-log handlers
    """
    # Create logger
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(LOGGING_CONFIG['level'])
    logger.propagate = False

    # Remove any existing handlers
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []

    # Create formatter
    formatter = logging.Formatter(
        LOGGING_CONFIG['format'],
        LOGGING_CONFIG['datefmt']
    )

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Build log (if a path is provided)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.INFO)
        logger.addHandler(file_handler)

    # Set third-party loggers to WARNING level
    for name in ("httpx", "httpcore", "anthropic"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def set_verbose_mode(logger: logging.Logger, verbose: bool) -> None:
    """Sets console handler level based on verbose mode"""
    level = logging.INFO if verbose else logging.WARNING
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)


def log_file_of(logger: logging.Logger) -> Optional[str]:
    """Path of the build log attached to the logger, if any"""
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return handler.baseFilename
    return None
