#!/usr/bin/env python3
"""
Logging for the ramsey package.

Every module logs to a child of the ``ramsey`` logger. Nothing is printed
until the application enables logging, either through the standard
``logging`` machinery or with `configure_logging`.
"""

import logging
import sys
from typing import Any, Dict, Optional, Union

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

PACKAGE_LOGGER = "ramsey"

_pkg_logger = logging.getLogger(PACKAGE_LOGGER)
_pkg_logger.addHandler(logging.NullHandler())
_pkg_logger.setLevel(logging.WARNING)


def _level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        value = logging.getLevelName(level.upper())
        if not isinstance(value, int):
            raise ValueError(f"Unknown logging level: {level!r}")
        return value
    return level


def configure_logging(
    level: Union[int, str] = logging.INFO,
    format_str: Optional[str] = None,
    handlers: Optional[Dict[str, Any]] = None
) -> logging.Logger:
    """
    Send ramsey log records to stderr or to the given handlers.

    Args:
        level: Level as an int or a name such as 'DEBUG' (default: INFO)
        format_str: Record format (default: DEFAULT_FORMAT)
        handlers: Handlers keyed by any label; a stderr handler is used if empty

    Returns:
        The package logger
    """
    level = _level(level)
    formatter = logging.Formatter(format_str or DEFAULT_FORMAT)

    pkg = logging.getLogger(PACKAGE_LOGGER)
    for handler in pkg.handlers[:]:
        pkg.removeHandler(handler)
    pkg.setLevel(level)

    for handler in (handlers or {'stderr': logging.StreamHandler(sys.stderr)}).values():
        handler.setFormatter(formatter)
        pkg.addHandler(handler)

    # records stop here instead of reaching the root logger
    pkg.propagate = False

    pkg.debug("Logging configured for ramsey package")
    return pkg


def get_logger(name: str) -> logging.Logger:
    """Logger for one component, e.g. get_logger('commitment') -> 'ramsey.commitment'."""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


__all__ = ["configure_logging", "get_logger", "DEFAULT_FORMAT"]
