"""
Utility Functions

Logging setup and display helpers shared by the command-line tool.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from imageprune.core.config.models import AppConfig
from imageprune.images import ensure_utc


def setup_logging(config: Optional[AppConfig] = None) -> None:
    """
    Set up logging configuration for the application.

    Args:
        config: Application configuration; defaults apply when omitted
    """
    config = config or AppConfig()
    logging.basicConfig(
        level=getattr(logging, config.get_log_level()),
        format=config.logging.format,
        datefmt=config.logging.datefmt,
        force=True
    )


def humanize_age(created_at: datetime, now: Optional[datetime] = None) -> str:
    """
    Describe how long ago an image was created, e.g. ``3 hours ago``.

    Args:
        created_at: Image creation time
        now: Reference time (defaults to the current UTC time)

    Returns:
        Human-readable age string
    """
    now = now or datetime.now(timezone.utc)
    seconds = int((ensure_utc(now) - ensure_utc(created_at)).total_seconds())
    for unit, size in (("year", 365 * 86400), ("month", 30 * 86400), ("week", 7 * 86400),
                       ("day", 86400), ("hour", 3600), ("minute", 60), ("second", 1)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "Less than a second ago"


def short_digest(digest: Optional[str], length: int = 12) -> str:
    """Truncate a ``sha256:...`` digest to its first hex characters."""
    if not digest:
        return ""
    return digest.split(":", 1)[-1][:length]
