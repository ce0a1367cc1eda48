"""
Datetime utilities for consistent timezone handling across the application.

This module provides utilities to ensure all datetime operations use timezone-aware
datetimes consistently. Business logic runs in the pharmacy's local timezone
(Europe/Brussels by default, configured via LOCAL_TIMEZONE).
"""

import calendar
import logging
from datetime import datetime, timezone, timedelta, date, time
from typing import Iterator, List, Optional, Tuple
from zoneinfo import ZoneInfo

from core.config import LOCAL_TIMEZONE

logger = logging.getLogger(__name__)

LOCAL_TZ = ZoneInfo(LOCAL_TIMEZONE)


def local_now() -> datetime:
    """
    Get current local datetime.

    All business logic in the application uses the pharmacy's timezone.

    Returns:
        Current datetime with the local timezone
    """
    return datetime.now(LOCAL_TZ)


def local_today() -> date:
    """Current date in the pharmacy's timezone."""
    return local_now().date()


def ensure_local(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware with the local timezone.

    Args:
        dt: Datetime to ensure is local timezone-aware

    Returns:
        Timezone-aware datetime in the local timezone, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # If naive, assume it's already local time and localize it
        return dt.replace(tzinfo=LOCAL_TZ)
    else:
        return dt.astimezone(LOCAL_TZ)


def to_utc(d: date, t: time) -> datetime:
    """Convert a local wall-clock date and time to an aware UTC datetime."""
    return datetime.combine(d, t).replace(tzinfo=LOCAL_TZ).astimezone(timezone.utc)


def parse_date_string(date_str: str) -> date:
    """
    Parse a date string in YYYY-MM-DD or YYYY/MM/DD format.

    Accepts both formats:
    - YYYY-MM-DD (e.g., "2024-01-01", "2024-1-1")
    - YYYY/MM/DD (e.g., "2024/01/01", "2024/1/1")

    Automatically normalizes single-digit months/days.

    Args:
        date_str: Date string in YYYY-MM-DD or YYYY/MM/DD format

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if not date_str or not date_str.strip():
        raise ValueError("Date string cannot be empty")

    date_str = date_str.strip()

    if '/' in date_str:
        parts = date_str.split('/')
    elif '-' in date_str:
        parts = date_str.split('-')
    else:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}")

    if len(parts) != 3:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}")

    year = parts[0].zfill(4)
    month = parts[1].zfill(2)
    day = parts[2].zfill(2)
    normalized = f"{year}-{month}-{day}"

    try:
        return datetime.strptime(normalized, '%Y-%m-%d').date()
    except ValueError as e:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD or YYYY/MM/DD): {date_str}") from e


def parse_time_string(time_str: str) -> time:
    """
    Parse a time-of-day string in HH:MM or HH:MM:SS format.

    Seconds are accepted because database drivers hand TIME columns back as
    "09:00:00"; they are discarded.

    Raises:
        ValueError: If the string is not a valid time of day
    """
    if not time_str or not time_str.strip():
        raise ValueError("Time string cannot be empty")

    parts = time_str.strip().split(':')
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time format (expected HH:MM): {time_str}")

    try:
        hour = int(parts[0])
        minute = int(parts[1])
        return time(hour, minute)
    except ValueError as e:
        raise ValueError(f"Invalid time format (expected HH:MM): {time_str}") from e


def format_time(t: time) -> str:
    """Format a time of day as HH:MM."""
    return t.strftime('%H:%M')


def format_date(d: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return d.isoformat()


def format_date_fr(d: date) -> str:
    """
    Format a date for French-language patient messages.

    Example: date(2024, 3, 5) -> "mardi 5 mars 2024"
    """
    weekdays = ['lundi', 'mardi', 'mercredi', 'jeudi', 'vendredi', 'samedi', 'dimanche']
    months = [
        'janvier', 'février', 'mars', 'avril', 'mai', 'juin',
        'juillet', 'août', 'septembre', 'octobre', 'novembre', 'décembre',
    ]
    return f"{weekdays[d.weekday()]} {d.day} {months[d.month - 1]} {d.year}"


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_bounds(d: date) -> Tuple[date, date]:
    """First and last date of the month containing d."""
    last_day = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=1), d.replace(day=last_day)


def week_start(d: date) -> date:
    """Monday of the week containing d."""
    return d - timedelta(days=d.weekday())


def week_dates(d: date, include_sunday: bool = True) -> List[date]:
    """
    Dates of the Monday-based week containing d.

    Args:
        d: Any date in the week
        include_sunday: When False, only Monday to Saturday are returned
    """
    monday = week_start(d)
    count = 7 if include_sunday else 6
    return [monday + timedelta(days=i) for i in range(count)]


def add_months(d: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month's length."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
