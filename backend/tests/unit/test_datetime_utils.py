"""
Unit tests for datetime utilities.
"""

from datetime import date, datetime, time, timezone

import pytest

from utils.datetime_utils import (
    LOCAL_TZ,
    add_months,
    ensure_local,
    format_date_fr,
    iter_dates,
    local_now,
    month_bounds,
    parse_date_string,
    parse_time_string,
    to_utc,
    week_dates,
    week_start,
)


class TestLocalTime:

    def test_local_now_is_aware(self):
        now = local_now()
        assert now.tzinfo is not None
        assert now.utcoffset() == now.astimezone(LOCAL_TZ).utcoffset()

    def test_ensure_local_naive(self):
        result = ensure_local(datetime(2025, 3, 3, 9, 0))
        assert result.tzinfo is LOCAL_TZ
        assert result.hour == 9

    def test_ensure_local_none(self):
        assert ensure_local(None) is None

    def test_to_utc_winter_and_summer(self):
        """Brussels is UTC+1 in winter and UTC+2 in summer."""
        assert to_utc(date(2025, 1, 15), time(9, 0)) == datetime(2025, 1, 15, 8, 0, tzinfo=timezone.utc)
        assert to_utc(date(2025, 7, 15), time(9, 0)) == datetime(2025, 7, 15, 7, 0, tzinfo=timezone.utc)


class TestParsing:

    @pytest.mark.parametrize("value", ["2025-03-05", "2025/03/05", "2025-3-5", " 2025/3/05 "])
    def test_parse_date_formats(self, value):
        assert parse_date_string(value) == date(2025, 3, 5)

    @pytest.mark.parametrize("value", ["", "05.03.2025", "2025-02-30", "2025-03"])
    def test_parse_date_invalid(self, value):
        with pytest.raises(ValueError):
            parse_date_string(value)

    def test_parse_time(self):
        assert parse_time_string("09:15") == time(9, 15)
        assert parse_time_string("09:15:00") == time(9, 15)

    @pytest.mark.parametrize("value", ["", "9", "24:00", "ab:cd"])
    def test_parse_time_invalid(self, value):
        with pytest.raises(ValueError):
            parse_time_string(value)


class TestCalendarHelpers:

    def test_iter_dates_inclusive(self):
        assert list(iter_dates(date(2025, 2, 27), date(2025, 3, 1))) == [
            date(2025, 2, 27), date(2025, 2, 28), date(2025, 3, 1)
        ]

    def test_iter_dates_empty_when_reversed(self):
        assert list(iter_dates(date(2025, 3, 2), date(2025, 3, 1))) == []

    def test_month_bounds_leap_year(self):
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_week_start_and_dates(self):
        assert week_start(date(2025, 3, 16)) == date(2025, 3, 10)
        assert week_dates(date(2025, 3, 12))[-1] == date(2025, 3, 16)
        assert week_dates(date(2025, 3, 12), include_sunday=False)[-1] == date(2025, 3, 15)

    def test_add_months_clamps_day(self):
        assert add_months(date(2025, 8, 31), 6) == date(2026, 2, 28)
        assert add_months(date(2025, 1, 15), 12) == date(2026, 1, 15)

    def test_format_date_fr(self):
        assert format_date_fr(date(2024, 3, 5)) == "mardi 5 mars 2024"
