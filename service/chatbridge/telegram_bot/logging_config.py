"""
Logging configuration for the bridge.
"""

import logging
import sys

from chatbridge.config import get_settings


def setup_logging(level: str | None = None):
    """Setup logging with proper format and handlers."""

    level_name = (level or get_settings().log_level).upper()
    log_level = getattr(logging, level_name, logging.DEBUG)

    # Create logger
    logger = logging.getLogger("chatbridge")
    logger.setLevel(log_level)

    # Remove existing handlers
    logger.handlers.clear()

    # Create console handler with formatting
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    # Create formatter
    formatter = logging.Formatter(
        '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)

    # Add handler to logger
    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger

# Global logger instance
bot_logger = setup_logging()
