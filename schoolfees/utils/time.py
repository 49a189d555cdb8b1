"""Time Utilities for UTC management"""

from datetime import date, datetime, timezone


def get_utc_now() -> datetime:
    """
    Returns a naive UTC datetime.
    Matches the existing DB schema (TIMESTAMP WITHOUT TIME ZONE).
    Avoids 'datetime.utcnow()' deprecation warnings.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_utc_today() -> date:
    """Calendar date used for due-date comparisons (status, defaulters, fines)."""
    return get_utc_now().date()
