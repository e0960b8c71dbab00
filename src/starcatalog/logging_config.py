"""
Logging Configuration
Sets up the package logger for the application.
"""
import logging
import sys
from typing import Optional, Union

from .config import LoggingConfig

PACKAGE_LOGGER = "starcatalog"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    fmt: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
) -> logging.Logger:
    """
    Configures the logger for the 'starcatalog' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG or "DEBUG")
        log_file: Optional path to save logs to a file.
        fmt: Record format

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Avoid duplicate records when the application is restarted in-process
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(fmt, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.info("Logging initialized.")
    return logger


def setup_logging_from_config(config: LoggingConfig, debug: bool = False) -> logging.Logger:
    """Configure logging from a ``LoggingConfig`` section; ``debug`` forces DEBUG."""
    level = logging.DEBUG if debug else config.level
    return setup_logging(level, config.file_path, config.format)
