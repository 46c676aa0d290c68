"""
Logging utilities for datalink.
Console output is colorized with colorlog; a plain-text file handler is optional.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
import colorlog

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: str = "INFO",
    colorize: bool = True
) -> logging.Logger:
    """
    Configure a named logger with a console handler and an optional file handler.

    Calling this again for the same name replaces the handlers, so the
    pipeline can re-apply the configured level after the YAML config loads.

    Args:
        name: Logger name (usually ``__name__``)
        log_file: Path of a log file to append to (optional)
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        colorize: Colorize console output

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger("datalink", log_file="logs/datalink.log")
        >>> logger.info("Loaded 3 datasets")
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers = []
    logger.propagate = False

    file_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if colorize:
        console_formatter = colorlog.ColoredFormatter(
            '%(log_color)s' + LOG_FORMAT,
            datefmt=DATE_FORMAT,
            log_colors=LOG_COLORS
        )
    else:
        console_formatter = file_formatter

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Return the named logger, setting up default handlers on first use.

    Module loggers (``datalink.engine.executor``) get no handlers of their
    own and propagate to the package logger, so a file handler installed
    on ``datalink`` receives every record.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    package = name.split('.')[0]

    if package != name:
        if not logging.getLogger(package).handlers:
            setup_logger(package)
        return logger

    if not logger.handlers:
        logger = setup_logger(name)

    return logger


def set_level(level: str) -> None:
    """Apply a level to every datalink logger created so far."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    for name, existing in logging.root.manager.loggerDict.items():
        if name.startswith('datalink') and isinstance(existing, logging.Logger):
            existing.setLevel(numeric)


def log_banner(logger: logging.Logger, title: str, char: str = "=") -> None:
    """Log a section banner, e.g. before each pipeline step."""
    logger.info(char * 80)
    logger.info(title)
    logger.info(char * 80)
