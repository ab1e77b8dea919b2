"""
Logging setup

One place to configure the ``factorrisk`` logger hierarchy. Modules only ever
call ``logging.getLogger(__name__)``; the CLI (or a notebook) calls
``setup_logging`` once.
"""

import logging
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "factorrisk"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_initialized = False


def _resolve_level(log_level: Union[str, int]) -> int:
    if isinstance(log_level, str):
        return getattr(logging, log_level.upper(), logging.INFO)
    return int(log_level)


def setup_logging(
    log_level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    reset: bool = False,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        log_level: DEBUG/INFO/WARNING/ERROR or a numeric level
        log_file: optional path for an additional file handler
        format_string: custom format, defaults to ``DEFAULT_FORMAT``
        reset: drop existing handlers and configure again

    Returns:
        The configured ``factorrisk`` logger
    """
    global _initialized

    level = _resolve_level(log_level)
    logger = logging.getLogger(PACKAGE_LOGGER)

    if _initialized and not reset:
        # Already configured, only the level may change
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.setLevel(level)
    logger.propagate = False
    _initialized = True

    logger.debug(f"Logging initialized: level={logging.getLevelName(level)}, file={log_file}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the ``factorrisk`` hierarchy."""
    if name.startswith(PACKAGE_LOGGER):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
