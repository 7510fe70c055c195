### Description ###
# Noxera Plus - Church Operations Platform API
# - Custom Logger Setup -
# Author: Bailey Dixon
# Date: 01/30/2025
# Python: 3.11
####################

# Standard Imports
import logging
import os
from datetime import datetime
from pathlib import Path

LOG_DIR_ENV = "NOXERA_LOG_DIR"


class CustomFormatter(logging.Formatter):
    """Custom formatter for Noxera API logging with specific time format"""

    def format(self, record):
        """
        Format log record with custom time format: HH:MM:SS AM/PM - name - LEVEL:

        Args:
            record: LogRecord instance

        Returns:
            Formatted log string
        """
        timestamp = datetime.fromtimestamp(record.created).strftime("%I:%M:%S %p")

        formatted_msg = f"{timestamp} - {record.name} - {record.levelname}: {record.getMessage()}"

        if record.exc_info:
            formatted_msg += "\n" + self.formatException(record.exc_info)

        return formatted_msg


def setup_logger(
    name: str, level: int = logging.INFO, log_to_file: bool = True, log_to_console: bool = True
) -> logging.Logger:
    """
    Set up a custom logger for the Noxera API

    Args:
        name: Logger name (typically __name__)
        level: Logging level (default: INFO)
        log_to_file: Whether to log to file (default: True)
        log_to_console: Whether to log to console (default: True)

    Returns:
        Configured logger instance

    Example:
        logger = setup_logger(__name__)
        logger.info("Session resolved")
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers if logger already exists
    if logger.handlers:
        return logger

    formatter = CustomFormatter()

    if log_to_file:
        logs_dir = Path(os.environ.get(LOG_DIR_ENV, "logs"))
        logs_dir.mkdir(parents=True, exist_ok=True)

        log_filename = f"noxera_api_{datetime.now().strftime('%Y-%m-%d')}.log"
        file_handler = logging.FileHandler(logs_dir / log_filename, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get an existing logger or create a new one with default settings

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return setup_logger(name)


def set_log_level(level_name: str) -> None:
    """
    Apply a level (e.g. from config.yaml) to every logger created so far.

    Args:
        level_name: DEBUG, INFO, WARNING, ERROR or CRITICAL
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        return

    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and logger.handlers:
            logger.setLevel(level)
            for handler in logger.handlers:
                handler.setLevel(level)
