"""
Logging setup

All loggers are children of the ``minisql`` logger. Its level comes from the
MINISQL_LOG_LEVEL environment variable (default WARNING).
"""

import logging
import os
import sys
from typing import Optional, Union

ROOT_LOGGER = "minisql"
LOG_LEVEL_ENV = "MINISQL_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return root
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(os.environ.get(LOG_LEVEL_ENV, "WARNING").upper())
    root.propagate = False
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger, or a named child of it"""
    root = _configure_root()
    if not name or name == ROOT_LOGGER:
        return root
    if name.startswith(ROOT_LOGGER + "."):
        name = name[len(ROOT_LOGGER) + 1:]
    return root.getChild(name)


def set_level(level: Union[int, str]) -> None:
    """Change the level of every MiniSQL logger"""
    if isinstance(level, str):
        level = level.upper()
    _configure_root().setLevel(level)
