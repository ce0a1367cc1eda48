"""
Unit tests for the slot catalog.
"""

from datetime import time

import pytest

from utils.slot_catalog import (
    build_catalog, catalog_time_objects, catalog_times, is_catalog_time, normalize_time
)


class TestBuildCatalog:

    def test_default_catalog(self):
        """Default day runs from 09:00 to 17:00 inclusive every 15 minutes."""
        times = catalog_times()
        assert len(times) == 33
        assert times[0] == "09:00"
        assert times[1] == "09:15"
        assert times[-1] == "17:00"

    def test_catalog_is_strictly_increasing(self):
        objects = catalog_time_objects()
        assert list(objects) == sorted(set(objects))
        assert [t.strftime('%H:%M') for t in objects] == list(catalog_times())

    def test_custom_step(self):
        assert build_catalog("08:00", "09:00", 30) == ("08:00", "08:30", "09:00")

    def test_end_not_on_grid_is_excluded(self):
        assert build_catalog("09:00", "09:40", 15) == ("09:00", "09:15", "09:30")

    def test_single_slot_day(self):
        assert build_catalog("12:00", "12:00", 15) == ("12:00",)

    def test_invalid_step(self):
        with pytest.raises(ValueError):
            build_catalog("09:00", "17:00", 0)

    def test_end_before_start(self):
        with pytest.raises(ValueError):
            build_catalog("17:00", "09:00", 15)


class TestNormalizeTime:

    def test_accepts_seconds(self):
        """Storage returns TIME columns with seconds."""
        assert normalize_time("09:00:00") == "09:00"

    def test_pads_hours(self):
        assert normalize_time("9:15") == "09:15"

    def test_accepts_time_objects(self):
        assert normalize_time(time(14, 45)) == "14:45"

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            normalize_time("noon")


class TestIsCatalogTime:

    @pytest.mark.parametrize("value", ["09:00", "12:30", "17:00", "16:45:00", time(10, 15)])
    def test_catalog_times(self, value):
        assert is_catalog_time(value)

    @pytest.mark.parametrize("value", ["08:45", "17:15", "09:10", "25:00", "abc", ""])
    def test_non_catalog_times(self, value):
        assert not is_catalog_time(value)
