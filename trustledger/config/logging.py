"""
Logging configuration.

Configures loguru sinks from settings.
"""

import sys

from loguru import logger

from trustledger.config.settings import Settings, settings


def setup_logging(config: Settings | None = None) -> None:
    """
    Configure loguru sinks.

    Args:
        config: Settings to use (defaults to global settings)
    """
    config = config or settings

    logger.remove()
    logger.add(sys.stderr, level=config.log_level)

    if config.log_file:
        logger.add(
            config.log_file,
            rotation="1 day",
            retention="7 days",
            level=config.log_level,
        )

    logger.debug(
        "Logging configured",
        extra={"level": config.log_level, "environment": config.environment},
    )
