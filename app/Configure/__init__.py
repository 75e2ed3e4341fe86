"""Configuration and logging setup for the HARSI journal"""

import os
import sys
from typing import Optional

from loguru import logger

from .settings.Settings import SafeConfig, Settings, SettingsManager

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def ConfigLogger(
    level: str = "INFO",
    log_file: Optional[str] = None,
    rotation: str = "10 MB",
    retention: str = "14 days",
) -> None:
    """Reset loguru sinks to stderr plus an optional rotating file"""
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        logger.add(
            log_file,
            level=level,
            rotation=rotation,
            retention=retention,
            encoding="utf-8",
            enqueue=True,
        )
    logger.debug(f"Logging configured at {level}")


__all__ = ["ConfigLogger", "SafeConfig", "Settings", "SettingsManager"]
