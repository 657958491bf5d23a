"""
Logging configuration for the ValtStorage CLI.

User-facing output goes through the rich console; the loggers here carry
diagnostics (config problems, request details) to stderr.
"""

import logging
import os
import sys
from typing import Optional, Union

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_ROOT_LOGGER = "valtstorage"

_HANDLER_NAME = "valtstorage-stderr"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the package namespace."""
    return logging.getLogger(name)


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    if level is None:
        level = os.environ.get("VALTSTORAGE_LOG_LEVEL", "WARNING")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.WARNING


def configure_logging(level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Install (or update) the stderr handler on the package logger.

    Args:
        level: Level name or number. Falls back to VALTSTORAGE_LOG_LEVEL, then WARNING.

    Returns:
        The package root logger.
    """
    root = logging.getLogger(_ROOT_LOGGER)
    resolved = _resolve_level(level)
    root.setLevel(resolved)

    handler = next((h for h in root.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        root.addHandler(handler)
    handler.setLevel(resolved)
    return root
