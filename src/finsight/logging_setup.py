"""Centralized logging configuration for the ``finsight`` package.

- ``configure_logging(...)`` attaches a single ``StreamHandler`` to the
  package root logger. Entry points (the CLI) call it once at startup.
- ``get_logger(name)`` returns a module logger, making sure the package root
  logger has at least a ``NullHandler`` when nothing is configured.

Library modules never attach their own handlers.
"""

import logging
import os
import sys
from typing import IO, Optional, Union

_PKG_LOGGER_NAME = "finsight"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _level_from_name(name: str) -> Optional[int]:
    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = getattr(logging, name, None)
    return numeric if isinstance(numeric, int) else None


def parse_level(level: Union[int, str, None]) -> int:
    """Resolve a logging level from an int, a level name, or the environment."""
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        resolved = _level_from_name(level)
        if resolved is not None:
            return resolved
    env_val = os.getenv("FINSIGHT_LOG_LEVEL")
    if env_val:
        resolved = _level_from_name(env_val)
        if resolved is not None:
            return resolved
    return logging.INFO


def configure_logging(
    level: Union[int, str, None] = None,
    fmt: Optional[str] = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    Args:
        level: Level as int or name; falls back to ``FINSIGHT_LOG_LEVEL``,
            then INFO
        fmt: Optional format string
        stream: Output stream for the handler (defaults to stderr)
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name with library-safe defaults."""
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
