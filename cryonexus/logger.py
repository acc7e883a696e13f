"""Logging configuration for CryoNexus."""

import logging
from pathlib import Path

LOG_FILE = Path("cryonexus.log")


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger for the given module name."""
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)

        # File handler - logs everything
        file_handler = logging.FileHandler(LOG_FILE, mode="a", delay=True)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

        # Prevent propagation to root logger (avoids console spam)
        logger.propagate = False

    return logger
