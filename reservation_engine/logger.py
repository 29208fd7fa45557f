"""Process-wide logging setup."""

from __future__ import annotations

import logging
import sys

_LOGGER_INITIALIZED = False


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once; later calls are ignored."""
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    if level is None:
        from .config import get_settings

        level = get_settings().log_level

    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
