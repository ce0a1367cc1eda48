"""
Unit tests for weekly schedule validation.
"""

from datetime import time

import pytest

from services.availability_service import AvailabilityService, WeeklyInterval


class TestValidateWeeklySchedule:

    def test_valid_schedule_builds_rows(self):
        rows = AvailabilityService.validate_weekly_schedule([
            WeeklyInterval(0, "09:00", "12:00"),
            WeeklyInterval(0, "13:00", "17:00"),
            WeeklyInterval(2, "09:00", "09:00"),
        ])
        assert [(r.day_of_week, r.start_time, r.end_time) for r in rows] == [
            (0, time(9), time(12)),
            (0, time(13), time(17)),
            (2, time(9), time(9)),
        ]
        assert all(r.is_available for r in rows)

    def test_touching_intervals_do_not_overlap(self):
        """Intervals are half-open, so 09:00-12:00 and 12:00-13:00 share no slot."""
        rows = AvailabilityService.validate_weekly_schedule([
            WeeklyInterval(1, "09:00", "12:00"),
            WeeklyInterval(1, "12:00", "13:00"),
        ])
        assert len(rows) == 2

    def test_overlap_rejected(self):
        with pytest.raises(ValueError, match="Overlapping"):
            AvailabilityService.validate_weekly_schedule([
                WeeklyInterval(3, "09:00", "12:00"),
                WeeklyInterval(3, "11:45", "13:00"),
            ])

    def test_same_times_on_different_days_allowed(self):
        rows = AvailabilityService.validate_weekly_schedule([
            WeeklyInterval(3, "09:00", "12:00"),
            WeeklyInterval(4, "09:00", "12:00"),
        ])
        assert len(rows) == 2

    @pytest.mark.parametrize("interval", [
        WeeklyInterval(7, "09:00", "10:00"),   # weekday out of range
        WeeklyInterval(0, "10:00", "09:00"),   # end before start
        WeeklyInterval(0, "09:10", "10:00"),   # off the grid
        WeeklyInterval(0, "08:00", "10:00"),   # before opening
        WeeklyInterval(0, "17:15", "17:30"),   # after the last slot
        WeeklyInterval(0, "nine", "10:00"),
    ])
    def test_invalid_intervals(self, interval):
        with pytest.raises(ValueError):
            AvailabilityService.validate_weekly_schedule([interval])
