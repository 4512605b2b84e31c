"""
Logging for the storefront core.

Everything logs under the "storefront" logger so a host application can
route or silence the library without touching the root logger.

Usage:
    from storefront.logging import get_logger
    logger = get_logger(__name__)

    logger.info("Cart loaded")
    logger.error("Remote cart call failed", exc_info=True)

Environment:
    LOG_LEVEL       DEBUG | INFO | WARNING | ERROR (default INFO)
    LOG_FORMAT      "simple" drops timestamps (the platform adds its own)
"""

import logging
import os
import sys
from functools import cache
from typing import Optional

PACKAGE_LOGGER = "storefront"

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s [%(name)s] %(message)s"

# Chatty per-request loggers of the HTTP stack used by supabase and RestCartAPI
_NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def configure_logging(level: Optional[str] = None, simple: Optional[bool] = None) -> logging.Logger:
    """
    Attach a stdout handler to the package logger.

    Safe to call more than once; the handler is installed only the first
    time, later calls just change the level.
    """
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    if simple is None:
        simple = os.environ.get("LOG_FORMAT", "").lower() == "simple"

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE if simple else LOG_FORMAT))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return package_logger


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    """Logger for a storefront module (pass __name__)."""
    return logging.getLogger(name)


def _escape_log_injection(value: str) -> str:
    """Escape control characters that could forge log entries (CWE-117)."""
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value: str | None) -> str:
    """
    Sanitize ID for safe logging.

    Cart item ids embed product ids and timestamps, so only the first
    8 characters are kept.

    Args:
        id_value: ID value to sanitize (can be None)

    Returns:
        Sanitized ID string (first 8 chars) or "N/A" if None
    """
    if not id_value:
        return "N/A"
    safe_value = _escape_log_injection(str(id_value))
    return safe_value[:8] if len(safe_value) > 8 else safe_value


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """
    Sanitize string for safe logging (truncated to max_length).

    Args:
        value: String value to sanitize (can be None)
        max_length: Maximum length to keep (default: 50)

    Returns:
        Sanitized string or "N/A" if None
    """
    if not value:
        return "N/A"
    safe_value = _escape_log_injection(str(value))
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."


__all__ = [
    "LOG_FORMAT",
    "LOG_FORMAT_SIMPLE",
    "configure_logging",
    "get_logger",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]
