"""Centralized logging configuration for the scouting tools."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int | str = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Configure the ``frcscout`` logger.

    Module loggers (``frcscout.notes``, ``frcscout.store``, ...) and the
    report and API loggers from get_logger() propagate to it. Connection
    chatter from urllib3 (under requests) is held at WARNING.

    Args:
        log_dir: Directory for log files (default: ./logs)
        level: Logging level or level name (default: INFO)
        log_to_file: Whether to log to a timestamped file (default: True)
        log_to_console: Whether to log to stdout (default: True)

    Returns:
        Configured logger instance

    Example:
        from frcscout.logging_config import setup_logging
        logger = setup_logging(log_to_file=False)
        logger.info("Loading scouting rows")
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger('frcscout')
    logger.setLevel(level)
    logger.handlers = []

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    simple_formatter = logging.Formatter('%(levelname)s: %(message)s')

    if log_to_file:
        log_dir = log_dir or Path('logs')
        log_dir.mkdir(exist_ok=True)
        log_file = log_dir / f'frcscout_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(simple_formatter)
        logger.addHandler(console_handler)

    logging.getLogger('urllib3').setLevel(max(level, logging.WARNING))

    return logger


def get_logger(name: str = 'frcscout') -> logging.Logger:
    """
    Get a logger under the ``frcscout`` namespace.

    Short names are prefixed, so get_logger('report') is ``frcscout.report``
    and picks up the handlers from setup_logging().
    """
    if name != 'frcscout' and not name.startswith('frcscout.'):
        name = f'frcscout.{name}'
    return logging.getLogger(name)
