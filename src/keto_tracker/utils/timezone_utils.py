"""
Timezone and calendar-day utilities.

Metrics and phases are keyed by calendar day in the user's timezone.
"""

from datetime import date, datetime

import pytz
from dateutil import parser


def today_in(timezone_str: str = "UTC") -> date:
    """
    Return the current calendar day in the given timezone.

    Args:
        timezone_str: Timezone string (e.g., "America/Santiago").

    Returns:
        Today's date in that timezone.
    """
    tz = pytz.timezone(timezone_str)
    return datetime.now(pytz.utc).astimezone(tz).date()


def parse_day(value: str | date | datetime) -> date:
    """
    Parse a calendar day from a string, date or datetime.

    Accepts ISO dates ("2024-01-15") as well as full timestamps, of which
    only the date part is kept.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parser.parse(value).date()


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative if end is earlier)."""
    return (end - start).days
