"""
Logging for the storefront.

The root logger gets one stdout handler the first time this module is
imported. ``LOG_LEVEL`` picks the level; on Vercel (``VERCEL=1``) the
timestamp is left to the platform.

    from storefront.logging import get_logger
    logger = get_logger(__name__)

Ids and e-mail addresses typed by users go through the sanitizers below
before they reach a log line.
"""

import logging
import os
import re
import sys
from functools import cache

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FORMAT_PLATFORM = "[%(levelname)s] %(name)s: %(message)s"

# Supabase, Unsplash and Upstash all talk HTTP through these
NOISY_LOGGERS = ("httpx", "httpcore", "hpack")

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")

ID_LOG_LENGTH = 8


def configure_logging(level: str | None = None) -> None:
    """Attach the stdout handler to the root logger unless one is present."""
    root = logging.getLogger()
    if root.handlers:
        return

    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    on_platform = os.environ.get("VERCEL") == "1"
    handler.setFormatter(logging.Formatter(LOG_FORMAT_PLATFORM if on_platform else LOG_FORMAT))

    root.setLevel(numeric_level)
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _escape(value: object) -> str:
    # Newlines would let user input forge extra log records
    return _CONTROL_CHARS_RE.sub(lambda m: "\\x%02x" % ord(m.group()), str(value))


def sanitize_id_for_logging(id_value: str | None) -> str:
    """Short, escaped form of a user or artwork id ("N/A" when missing)."""
    if not id_value:
        return "N/A"
    return _escape(id_value)[:ID_LOG_LENGTH]


def mask_email_for_logging(email: str | None) -> str:
    """
    Keep only enough of an address to correlate log lines.

    >>> mask_email_for_logging("ada@example.com")
    'a***@example.com'
    """
    if not email:
        return "N/A"
    local, sep, domain = _escape(email).partition("@")
    if not sep:
        return local[:1] + "***"
    return f"{local[:1]}***@{domain[:40]}"


__all__ = [
    "configure_logging",
    "get_logger",
    "mask_email_for_logging",
    "sanitize_id_for_logging",
]
