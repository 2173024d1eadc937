"""Utility functions for medcompress."""

from medcompress.utils.io import save_results, load_results
from medcompress.utils.logging import setup_logger, get_logger

__all__ = [
    "save_results",
    "load_results",
    "setup_logger",
    "get_logger",
]
