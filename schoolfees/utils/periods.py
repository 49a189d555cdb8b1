"""Billing period helpers ("YYYY-MM" strings)"""

import calendar
import re
from datetime import date
from typing import Tuple

_PERIOD_RE = re.compile(r"^(\d{4})-(\d{2})$")

QUARTER_START_MONTHS = (1, 4, 7, 10)


def parse_period(period: str) -> Tuple[int, int]:
    """
    Split a billing period into (year, month).

    Raises:
        ValueError: if the string is not a valid "YYYY-MM" period
    """
    match = _PERIOD_RE.match(period or "")
    if not match:
        raise ValueError(f"Billing period must look like YYYY-MM, got {period!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Billing period month out of range: {period!r}")
    return year, month


def format_period(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def period_of(day: date) -> str:
    return format_period(day.year, day.month)


def due_date_for(period: str, due_day: int) -> date:
    """Due date inside the period; a due day past month end falls on the last day."""
    year, month = parse_period(period)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(due_day, last_day))
