"""
Logging configuration for the todo command-line tool.
"""

from __future__ import annotations

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PACKAGE_LOGGER = "todo_cli"


# PUBLIC_INTERFACE
def setup_logging(level: Union[int, str] = logging.WARNING) -> logging.Logger:
    """
    Configure the package logger with a single stderr handler and return it.

    stdout is reserved for command output, so log records never mix with it.
    Unknown level names fall back to WARNING.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.WARNING

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    return package_logger
