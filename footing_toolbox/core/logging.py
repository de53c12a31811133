from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from .paths import logs_dir

LOG_FILE_NAME = "footing_toolbox.log"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"
CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level:<8}</level> | {message}"


def configure_logging(console_level: str = "INFO") -> Path:
    """Install the application sinks: rotating file (DEBUG) plus stderr console.

    Run-scoped sinks added by tools are independent of these. Returns the log file path.
    """
    logger.remove()
    log_path = logs_dir() / LOG_FILE_NAME
    logger.add(
        str(log_path),
        level="DEBUG",
        format=FILE_FORMAT,
        rotation="5 MB",
        retention=10,
        enqueue=True,
        backtrace=False,
        diagnose=False,
    )
    logger.add(sys.stderr, level=console_level, format=CONSOLE_FORMAT, colorize=None)
    logger.debug(f"Logging to {log_path}")
    return log_path
