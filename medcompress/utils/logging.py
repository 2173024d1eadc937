"""Logging setup for medcompress."""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(
    name: str = "medcompress",
    log_file: Optional[Path] = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Configure a logger with a console handler and an optional file handler.
    
    Calling this twice for the same name replaces the previous handlers,
    so a new run directory gets its own log file.
    
    Args:
        name: Logger name (usually the package name)
        log_file: Optional path of a log file to write alongside the console
        level: Logging level
    
    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    
    formatter = logging.Formatter(LOG_FORMAT)
    
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)
    
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a module logger under the medcompress hierarchy."""
    if not name.startswith("medcompress"):
        name = f"medcompress.{name}"
    return logging.getLogger(name)
