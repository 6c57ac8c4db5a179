"""Logging configuration for ipwatch.

Level and destination come from the config document (``logLevel`` and
``logFile``); the ``--log-level`` option of the CLI overrides the level.
Records of every ``ipwatch.*`` module logger end up on the package logger.
"""

import logging
from pathlib import Path

from ipwatch.config import Config

LOGGER_NAME = "ipwatch"

# 2025-01-27 10:30:45 [INFO] message
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logger: logging.Logger | None = None


def resolve_level(config: Config, override: str | None = None) -> int:
    """Numeric level for ``override`` or else ``config.log_level``.

    Unknown names mean INFO, so a typo in the document never silences logging.
    """
    name = (override or config.log_level or "").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _open_log_file(log_file: str) -> logging.FileHandler:
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf-8")


def setup_logging(config: Config, level: str | None = None) -> logging.Logger:
    """Configure the package logger from the config document.

    Only the first call in a process has an effect.

    Args:
        config: Config carrying ``log_level`` and ``log_file``.
        level: Level name that wins over ``config.log_level``.

    Returns:
        The ``ipwatch`` logger.

    Raises:
        OSError: If the log file or its directory cannot be created.
    """
    global _logger
    if _logger is not None:
        return _logger

    handlers: list[logging.Handler] = []
    if config.log_file:
        handlers.append(_open_log_file(config.log_file))
    handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_level(config, level))
    logger.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False

    _logger = logger
    return logger


def reset_logging() -> None:
    """Close handlers and forget the configured logger. Used for testing."""
    global _logger
    if _logger is not None:
        for handler in _logger.handlers:
            handler.close()
        _logger.handlers.clear()
        _logger.propagate = True
        _logger = None
