"""Logging configuration helpers for the project."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> | <level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {process}:{thread} | "
    "{name}:{function}:{line} | {message}"
)


def configure_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure loguru with a stderr sink and an optional rotating file sink."""
    log_level = os.getenv("YOLO8_ONNX_LOG_LEVEL", log_level).upper()

    logger.remove()
    logger.add(sink=sys.stderr, format=CONSOLE_FORMAT, level=log_level)
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            rotation="10 MB",
            retention="7 days",
            level=log_level,
            format=FILE_FORMAT,
        )
