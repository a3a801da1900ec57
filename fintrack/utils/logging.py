"""
Logging utilities for the fintrack backend.

SECURITY RULES:
- NEVER log Supabase Auth tokens, API keys, or secrets
- NEVER log chat message contents or the financial summary sent to the AI gateway

Acceptable logging:
- High-level events (e.g., "Transaction created", "Balance adjusted")
- Record identifiers and field names
- Error codes and sanitized error messages
"""

import logging
from typing import Union

from fintrack.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_level(level: Union[int, str, None] = None) -> int:
    """Map a level name or number to a logging level; falls back to LOG_LEVEL, then INFO."""
    if isinstance(level, int):
        return level
    name = (level or settings.LOG_LEVEL or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def get_logger(name: str, level: Union[int, str, None] = None) -> logging.Logger:
    """
    Get a logger for the specified module.

    Handlers are configured once on the root logger (main.py and the
    scripts call logging.basicConfig); this only sets the level.

    Usage:
        >>> from fintrack.utils.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Balance adjusted")
    """
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level))

    return logger
