"""
Belgian public holidays.

Fixed holidays plus the three Easter-based ones (Easter Monday, Ascension,
Whit Monday). Used to close holidays when a template is applied.
"""

from datetime import date, timedelta
from functools import lru_cache
from typing import FrozenSet


def easter_sunday(year: int) -> date:
    """Easter Sunday of a Gregorian year (anonymous Gregorian algorithm)."""
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = ((h + l - 7 * m + 114) % 31) + 1
    return date(year, month, day)


@lru_cache(maxsize=32)
def belgian_holidays(year: int) -> FrozenSet[date]:
    """All Belgian public holidays of a year."""
    easter = easter_sunday(year)
    return frozenset({
        date(year, 1, 1),    # New Year
        date(year, 5, 1),    # Labour Day
        date(year, 7, 21),   # National Day
        date(year, 8, 15),   # Assumption
        date(year, 11, 1),   # All Saints
        date(year, 11, 11),  # Armistice
        date(year, 12, 25),  # Christmas
        easter + timedelta(days=1),   # Easter Monday
        easter + timedelta(days=39),  # Ascension
        easter + timedelta(days=50),  # Whit Monday
    })


def is_belgian_holiday(d: date) -> bool:
    return d in belgian_holidays(d.year)
