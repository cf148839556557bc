# infrastructure/logging/log_setup.py
import os
import sys

from loguru import logger

LOG_LEVEL_ENV = "HTTPSTAT_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def setup_console_logging(level: str = "") -> None:
    # stdout carries the report; diagnostics go to stderr
    level = (level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    logger.remove()
    logger.add(lambda msg: print(msg, end="", file=sys.stderr), level=level, format="{time:HH:mm:ss.SSS} {level: <7} {message}")
