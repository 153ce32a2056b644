"""
Logging configuration for the forecasting engine.
"""
import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(
    name: str = "forecast", level: int = logging.INFO, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up the forecast logger.

    Calling it again changes the level of the existing handlers and adds a
    file handler when a new log_file is given.

    Args:
        name: Logger name
        level: Logging level for the logger and its handlers
        log_file: Optional file to mirror the console output to

    Returns:
        logging.Logger: Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)

    if log_file:
        path = os.path.abspath(log_file)
        known = {
            getattr(handler, "baseFilename", None) for handler in logger.handlers
        }
        if path not in known:
            directory = os.path.dirname(path)
            os.makedirs(directory, exist_ok=True)
            file_handler = logging.FileHandler(path)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(file_handler)

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger


# Default logger for the application
logger = setup_logger()
