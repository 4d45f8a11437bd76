"""
Logging Configuration
Console logging shared by the API, the orchestrator and the progress client
"""

import logging
import sys


def setup_logger(name: str = "videoai", level: int = logging.INFO) -> logging.Logger:
    """Set up and configure the application logger"""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_format = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(module)s | %(message)s",
        datefmt="%H:%M:%S"
    )
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    return logger


def get_logger(name: str = "videoai") -> logging.Logger:
    """Get the configured logger instance"""
    return logging.getLogger(name)
