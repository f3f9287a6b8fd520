"""
Logging configuration.

Configures the loguru logger used across the engine.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger

from network_settlement.config.settings import settings


def setup_logging(to_file: bool = True) -> None:
    """
    Configure logger sinks.

    Args:
        to_file: Also write to the rotating log file from settings
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    if to_file:
        logger.add(
            settings.log_file,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
            level=settings.log_level,
            encoding="utf-8",
        )

    logger.info(
        "Logging configured",
        extra={"level": settings.log_level, "environment": settings.environment},
    )
