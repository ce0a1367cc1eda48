"""
Bookable time-of-day catalog.

Every day is divided into the same ordered list of slots, from SLOT_DAY_START
to SLOT_DAY_END (inclusive) every SLOT_STEP_MINUTES. The catalog is the stable
ordering of every day view and the join key for date override rows.
"""

from datetime import datetime, time, timedelta
from typing import Tuple, Union

from core.config import SLOT_DAY_END, SLOT_DAY_START, SLOT_STEP_MINUTES
from utils.datetime_utils import format_time, parse_time_string

TimeLike = Union[str, time]


def build_catalog(day_start: str, day_end: str, step_minutes: int) -> Tuple[str, ...]:
    """
    Build an ordered catalog of "HH:MM" slot times.

    Args:
        day_start: First slot of the day, "HH:MM"
        day_end: Last slot of the day (inclusive), "HH:MM"
        step_minutes: Distance between two consecutive slots

    Raises:
        ValueError: If the step is not positive or the end is before the start
    """
    if step_minutes <= 0:
        raise ValueError("Slot step must be a positive number of minutes")

    anchor = datetime(2000, 1, 1)
    current = datetime.combine(anchor, parse_time_string(day_start))
    last = datetime.combine(anchor, parse_time_string(day_end))
    if last < current:
        raise ValueError(f"Slot day end {day_end} is before day start {day_start}")

    slots = []
    while current <= last:
        slots.append(current.strftime('%H:%M'))
        current += timedelta(minutes=step_minutes)
    return tuple(slots)


_CATALOG = build_catalog(SLOT_DAY_START, SLOT_DAY_END, SLOT_STEP_MINUTES)
_CATALOG_SET = frozenset(_CATALOG)
_CATALOG_OBJECTS = tuple(parse_time_string(t) for t in _CATALOG)


def catalog_times() -> Tuple[str, ...]:
    """Ordered catalog of slot times as "HH:MM" strings."""
    return _CATALOG


def catalog_time_objects() -> Tuple[time, ...]:
    """Ordered catalog of slot times as datetime.time values."""
    return _CATALOG_OBJECTS


def normalize_time(value: TimeLike) -> str:
    """
    Normalize a time value to "HH:MM".

    Storage returns TIME columns as "09:00:00" or time objects; both map to "09:00".
    """
    if isinstance(value, time):
        return format_time(value)
    return format_time(parse_time_string(value))


def is_catalog_time(value: TimeLike) -> bool:
    """Whether a time falls exactly on a catalog slot."""
    try:
        return normalize_time(value) in _CATALOG_SET
    except ValueError:
        return False
