"""
Logging for the Alamer storefront.

The root logger gets one stdout handler on import. Level and format come
from storefront.config (LOG_LEVEL, LOG_FORMAT = detailed | simple; simple
is the default on Vercel, where the platform adds its own timestamps).

Usage:
    from storefront.logging import get_logger
    logger = get_logger(__name__)

    logger.info(f"Cart hydrated: {describe_lines_for_logging(items)}")
    logger.error("Failed to persist cart", exc_info=True)

Anything customer-controlled (product ids from requests, stored payloads,
phone numbers) goes through one of the helpers below before it is logged.
"""

import logging
import sys
from functools import cache
from typing import Iterable, Optional

from storefront import config

LOG_FORMATS = {
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "simple": "%(levelname)s - %(name)s - %(message)s",
}

# Per-request chatter from the Supabase / Upstash HTTP clients
QUIET_LOGGERS = ("httpx", "httpcore", "hpack")

# Lines named in a cart description before it is cut short
MAX_LOGGED_LINES = 3


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None, force: bool = False) -> None:
    """
    Attach the stdout handler to the root logger.

    Does nothing when the root logger already has handlers (uvicorn, pytest)
    unless `force` is set.
    """
    root = logging.getLogger()
    if root.handlers and not force:
        return
    if force:
        for existing in list(root.handlers):
            root.removeHandler(existing)

    level_value = getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO)
    root.setLevel(level_value)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level_value)
    handler.setFormatter(logging.Formatter(LOG_FORMATS.get(log_format or config.LOG_FORMAT, LOG_FORMATS["detailed"])))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _escape_log_injection(value: str) -> str:
    """Escape control characters that could forge log entries (CWE-117)."""
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def sanitize_id_for_logging(id_value: Optional[str]) -> str:
    """Product or order id from a request: escaped, cut to 8 chars, "N/A" if empty."""
    if not id_value:
        return "N/A"
    return _escape_log_injection(str(id_value))[:8]


def sanitize_string_for_logging(value: Optional[str], max_length: int = 50) -> str:
    """Free text (e.g. a stored cart payload): escaped and truncated to max_length."""
    if not value:
        return "N/A"
    safe_value = _escape_log_injection(str(value))
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."


def mask_phone_for_logging(phone: Optional[str]) -> str:
    """
    Customer phone with the middle digits hidden.

    "+201012345678" -> "+2010****5678"; anything shorter than 8 digits is
    fully masked.
    """
    if not phone:
        return "N/A"
    digits = "".join(c for c in phone if c.isdigit())
    if len(digits) < 8:
        return "****"
    prefix = "+" if phone.strip().startswith("+") else ""
    return f"{prefix}{digits[:4]}****{digits[-4:]}"


def describe_lines_for_logging(items: Iterable) -> str:
    """
    Short summary of cart lines: "3 lines, 6 items (P1 x2, P2 x1, P3 x3)".

    Only the first few lines are named; ids are sanitized.
    """
    items = list(items)
    if not items:
        return "empty"
    named = ", ".join(
        f"{sanitize_id_for_logging(item.product_id)} x{item.quantity}" for item in items[:MAX_LOGGED_LINES]
    )
    if len(items) > MAX_LOGGED_LINES:
        named += f", +{len(items) - MAX_LOGGED_LINES} more"
    total_items = sum(item.quantity for item in items)
    return f"{len(items)} lines, {total_items} items ({named})"


__all__ = [
    "LOG_FORMATS",
    "configure_logging",
    "describe_lines_for_logging",
    "get_logger",
    "mask_phone_for_logging",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]
