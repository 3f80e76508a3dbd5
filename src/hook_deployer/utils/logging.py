"""Logging helpers."""

from __future__ import annotations

import logging
from typing import Optional, Union

_LOGGING_CONFIGURED = False

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    global _LOGGING_CONFIGURED
    if not _LOGGING_CONFIGURED:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        _LOGGING_CONFIGURED = True
    return logging.getLogger(name)


def set_level(level: Union[str, int]) -> None:
    """Apply a level such as ``"DEBUG"`` to the root logger."""
    get_logger()
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    logging.getLogger().setLevel(level)
