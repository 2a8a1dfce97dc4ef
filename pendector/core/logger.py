"""Logging configuration and utilities."""

import os
import sys
import logging
from typing import Optional


def setup_logging(level: int = logging.WARNING, log_file: Optional[str] = None) -> logging.Logger:
    """Configure logging to stderr and optionally a file.

    Stdout is left alone so reports (text or JSON) stay parseable.

    Args:
        level: Level for the console handler
        log_file: Optional log file path, always written at DEBUG level

    Returns:
        Configured logger instance
    """
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    handlers = [console]

    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if log_file else level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True  # Reset any existing configuration
    )

    logger = logging.getLogger('pendector')
    if log_file:
        logger.info(f"Log file: {log_file}")

    return logger
