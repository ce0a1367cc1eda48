"""
Unit tests for template operations on availability drafts.
"""

from datetime import date

import pytest

from services.availability_template_service import AvailabilityTemplateService, TemplateRangeError
from shared_types.availability import AvailabilityDraft
from utils.datetime_utils import iter_dates
from utils.slot_catalog import catalog_times

MORNING = {t: t < "12:00" for t in catalog_times()}
CLOSED = {t: False for t in catalog_times()}
OPEN = {t: True for t in catalog_times()}


def draft_for(start: date, end: date, pattern=None) -> AvailabilityDraft:
    base = CLOSED if pattern is None else pattern
    return AvailabilityDraft(days={d: dict(base) for d in iter_dates(start, end)})


class TestToggleSlot:

    def test_toggle_flips_one_slot(self):
        day = date(2025, 3, 3)
        draft = draft_for(day, day)
        assert AvailabilityTemplateService.toggle_slot(draft, day, "09:15") is True
        assert draft.pattern(day)["09:15"] is True
        assert AvailabilityTemplateService.toggle_slot(draft, day, "09:15:00") is False
        assert draft.pattern(day)["09:15"] is False

    def test_toggle_unknown_slot(self):
        day = date(2025, 3, 3)
        draft = draft_for(day, day)
        with pytest.raises(ValueError):
            AvailabilityTemplateService.toggle_slot(draft, day, "08:00")

    def test_toggle_unloaded_date(self):
        with pytest.raises(ValueError):
            AvailabilityTemplateService.toggle_slot(AvailabilityDraft(), date(2025, 3, 3), "09:00")

    def test_set_all_slots(self):
        day = date(2025, 3, 3)
        draft = draft_for(day, day)
        AvailabilityTemplateService.set_all_slots(draft, day, True)
        assert all(draft.pattern(day).values())


class TestApplyToMonth:

    def test_copies_source_to_every_other_date(self):
        source = date(2025, 3, 10)
        draft = draft_for(date(2025, 3, 1), date(2025, 3, 31))
        draft.set_pattern(source, MORNING)

        changed = AvailabilityTemplateService.apply_to_month(draft, source, date(2025, 3, 20))

        assert len(changed) == 30
        assert source not in changed
        for day in iter_dates(date(2025, 3, 1), date(2025, 3, 31)):
            assert draft.pattern(day) == MORNING

    def test_targets_get_independent_copies(self):
        source = date(2025, 3, 10)
        draft = draft_for(date(2025, 3, 1), date(2025, 3, 31))
        draft.set_pattern(source, MORNING)
        AvailabilityTemplateService.apply_to_month(draft, source, source)

        draft.pattern(date(2025, 3, 11))["09:00"] = False
        assert draft.pattern(date(2025, 3, 12))["09:00"] is True
        assert draft.pattern(source)["09:00"] is True

    def test_keep_weekends_closed(self):
        source = date(2025, 3, 10)
        draft = draft_for(date(2025, 3, 1), date(2025, 3, 31), OPEN)
        draft.set_pattern(source, MORNING)

        AvailabilityTemplateService.apply_to_month(
            draft, source, source, keep_weekends_closed=True
        )

        assert draft.pattern(date(2025, 3, 15)) == CLOSED  # Saturday
        assert draft.pattern(date(2025, 3, 16)) == CLOSED  # Sunday
        assert draft.pattern(date(2025, 3, 14)) == MORNING  # Friday

    def test_close_holidays(self):
        source = date(2025, 5, 5)
        draft = draft_for(date(2025, 5, 1), date(2025, 5, 31), OPEN)
        draft.set_pattern(source, MORNING)

        AvailabilityTemplateService.apply_to_month(draft, source, source, close_holidays=True)

        assert draft.pattern(date(2025, 5, 1)) == CLOSED  # Labour Day
        assert draft.pattern(date(2025, 5, 29)) == CLOSED  # Ascension
        assert draft.pattern(date(2025, 5, 2)) == MORNING

    def test_source_must_be_loaded(self):
        draft = draft_for(date(2025, 3, 1), date(2025, 3, 31))
        with pytest.raises(ValueError):
            AvailabilityTemplateService.apply_to_month(draft, date(2025, 4, 1), date(2025, 3, 1))

    def test_sundays_can_be_skipped(self):
        source = date(2025, 3, 10)
        draft = draft_for(date(2025, 3, 1), date(2025, 3, 31))
        draft.set_pattern(source, MORNING)

        changed = AvailabilityTemplateService.apply_to_month(
            draft, source, source, include_sundays=False
        )

        sundays = [date(2025, 3, d) for d in (2, 9, 16, 23, 30)]
        assert len(changed) == 25
        assert not set(sundays) & set(changed)
        for sunday in sundays:
            assert draft.pattern(sunday) == CLOSED


class TestApplyToRange:

    def test_range_includes_end_date(self):
        source = date(2025, 3, 10)
        draft = draft_for(source, date(2025, 3, 20))
        draft.set_pattern(source, MORNING)

        changed = AvailabilityTemplateService.apply_to_range(draft, source, date(2025, 3, 13))

        assert changed == [date(2025, 3, 11), date(2025, 3, 12), date(2025, 3, 13)]
        assert draft.pattern(date(2025, 3, 14)) == CLOSED

    def test_range_can_skip_sundays(self):
        source = date(2025, 3, 10)
        draft = draft_for(source, date(2025, 3, 20))
        draft.set_pattern(source, MORNING)

        changed = AvailabilityTemplateService.apply_to_range(
            draft, source, date(2025, 3, 17), include_sundays=False
        )

        assert date(2025, 3, 16) not in changed
        assert changed[-1] == date(2025, 3, 17)
        assert draft.pattern(date(2025, 3, 16)) == CLOSED

    def test_same_day_range_changes_nothing(self):
        source = date(2025, 3, 10)
        draft = draft_for(source, source, MORNING)
        assert AvailabilityTemplateService.apply_to_range(draft, source, source) == []

    def test_end_before_source_leaves_draft_untouched(self):
        source = date(2025, 3, 10)
        draft = draft_for(date(2025, 3, 1), source)
        draft.set_pattern(source, MORNING)
        before = draft.copy()

        with pytest.raises(TemplateRangeError) as exc_info:
            AvailabilityTemplateService.apply_to_range(draft, source, date(2025, 3, 5))

        assert isinstance(exc_info.value, ValueError)
        assert draft.days == before.days


class TestWeekOperations:

    def test_week_to_month_copies_monday_to_saturday(self):
        draft = draft_for(date(2025, 3, 1), date(2025, 3, 31))
        draft.set_pattern(date(2025, 3, 10), MORNING)   # Monday
        draft.set_pattern(date(2025, 3, 15), OPEN)      # Saturday
        draft.set_pattern(date(2025, 3, 16), OPEN)      # Sunday, not copied

        changed = AvailabilityTemplateService.apply_week_to_month(draft, date(2025, 3, 12))

        for monday in (date(2025, 3, 3), date(2025, 3, 17), date(2025, 3, 24), date(2025, 3, 31)):
            assert draft.pattern(monday) == MORNING
        for saturday in (date(2025, 3, 1), date(2025, 3, 8), date(2025, 3, 22), date(2025, 3, 29)):
            assert draft.pattern(saturday) == OPEN
        assert draft.pattern(date(2025, 3, 23)) == CLOSED  # Sunday
        assert date(2025, 3, 10) not in changed
        assert changed == sorted(changed)

    def test_reset_week(self):
        draft = draft_for(date(2025, 3, 10), date(2025, 3, 16), OPEN)
        changed = AvailabilityTemplateService.reset_week(draft, date(2025, 3, 13))
        assert changed == [date(2025, 3, d) for d in range(10, 16)]
        for day in changed:
            assert draft.pattern(day) == CLOSED
        assert draft.pattern(date(2025, 3, 16)) == OPEN

    def test_close_week_leaves_sunday(self):
        draft = draft_for(date(2025, 3, 10), date(2025, 3, 16), OPEN)
        changed = AvailabilityTemplateService.close_week(draft, date(2025, 3, 16))
        assert len(changed) == 6
        assert draft.pattern(date(2025, 3, 15)) == CLOSED
        assert draft.pattern(date(2025, 3, 16)) == OPEN

    def test_reset_week_matches_close_week(self):
        reset = draft_for(date(2025, 3, 10), date(2025, 3, 16), MORNING)
        closed = reset.copy()
        reset_days = AvailabilityTemplateService.reset_week(reset, date(2025, 3, 12))
        closed_days = AvailabilityTemplateService.close_week(closed, date(2025, 3, 12))
        assert reset_days == closed_days
        assert reset.days == closed.days
