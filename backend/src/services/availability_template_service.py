"""
Template operations on an availability draft.

Staff build a month by designing one day (or one week) and copying it around.
All operations mutate an AvailabilityDraft in memory; nothing is persisted
until the draft is handed to the sync service. Blocked dates and the weekly
schedule are never touched here.
"""

import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List

from shared_types.availability import AvailabilityDraft
from utils.datetime_utils import iter_dates, month_bounds, week_dates
from utils.holidays import is_belgian_holiday
from utils.slot_catalog import catalog_times, normalize_time

logger = logging.getLogger(__name__)

SATURDAY = 5
SUNDAY = 6


class TemplateRangeError(ValueError):
    """Raised when a template range ends before it starts."""

    def __init__(self, source_date: date, end_date: date):
        self.source_date = source_date
        self.end_date = end_date
        super().__init__(
            f"End date {end_date.isoformat()} is before source date {source_date.isoformat()}"
        )


def _closed_pattern() -> Dict[str, bool]:
    return {slot: False for slot in catalog_times()}


def _targets(start: date, end: date, include_sundays: bool) -> List[date]:
    return [day for day in iter_dates(start, end) if include_sundays or day.weekday() != SUNDAY]


class AvailabilityTemplateService:
    """
    Service for editing availability drafts day by day or with templates.

    Every method works on the draft passed in and returns the list of dates it
    changed, so callers can show a preview of exactly what will be saved.
    """

    @staticmethod
    def _source_pattern(draft: AvailabilityDraft, source_date: date) -> Dict[str, bool]:
        if source_date not in draft.days:
            raise ValueError(f"Source date {source_date.isoformat()} is not loaded")
        return dict(draft.pattern(source_date))

    @staticmethod
    def toggle_slot(draft: AvailabilityDraft, day: date, time_str: str) -> bool:
        """
        Flip one slot between open and closed.

        Returns:
            The slot's new open state

        Raises:
            ValueError: If the date is not loaded or the time is not a catalog slot
        """
        slot = normalize_time(time_str)
        if day not in draft.days:
            raise ValueError(f"Date {day.isoformat()} is not loaded")
        pattern = draft.pattern(day)
        if slot not in pattern:
            raise ValueError(f"{time_str} is not a bookable slot time")
        pattern[slot] = not pattern[slot]
        return pattern[slot]

    @staticmethod
    def set_all_slots(draft: AvailabilityDraft, day: date, is_open: bool) -> None:
        """Open or close every slot of one day."""
        draft.set_pattern(day, {slot: is_open for slot in catalog_times()})

    @staticmethod
    def apply_to_dates(
        draft: AvailabilityDraft,
        source_date: date,
        targets: Iterable[date],
        keep_weekends_closed: bool = False,
        close_holidays: bool = False,
    ) -> List[date]:
        """
        Copy the source day's pattern onto every target date.

        The source date itself is skipped, so applying a template onto a range
        that contains its own source leaves the source untouched. Each target
        receives its own copy of the pattern.

        Args:
            draft: Draft to mutate
            source_date: Day whose pattern is copied
            targets: Dates receiving the pattern
            keep_weekends_closed: Force Saturday and Sunday targets closed
            close_holidays: Force Belgian public holidays closed

        Returns:
            Dates whose pattern was replaced, in ascending order
        """
        source = AvailabilityTemplateService._source_pattern(draft, source_date)
        changed: List[date] = []
        for target in sorted(set(targets)):
            if target == source_date:
                continue
            if keep_weekends_closed and target.weekday() in (SATURDAY, SUNDAY):
                draft.set_pattern(target, _closed_pattern())
            elif close_holidays and is_belgian_holiday(target):
                draft.set_pattern(target, _closed_pattern())
            else:
                draft.set_pattern(target, dict(source))
            changed.append(target)
        logger.debug(f"Applied template of {source_date.isoformat()} to {len(changed)} dates")
        return changed

    @staticmethod
    def apply_to_month(
        draft: AvailabilityDraft,
        source_date: date,
        month_date: date,
        keep_weekends_closed: bool = False,
        close_holidays: bool = False,
        include_sundays: bool = True,
    ) -> List[date]:
        """
        Copy the source day onto every date of the month containing month_date.

        With include_sundays=False, Sundays are not targets and keep their pattern.
        """
        first, last = month_bounds(month_date)
        return AvailabilityTemplateService.apply_to_dates(
            draft, source_date, _targets(first, last, include_sundays),
            keep_weekends_closed, close_holidays,
        )

    @staticmethod
    def apply_to_range(
        draft: AvailabilityDraft,
        source_date: date,
        end_date: date,
        keep_weekends_closed: bool = False,
        close_holidays: bool = False,
        include_sundays: bool = True,
    ) -> List[date]:
        """
        Copy the source day onto every date from source_date to end_date.
        Sundays are skipped when include_sundays is False.

        Raises:
            TemplateRangeError: If end_date is before source_date; the draft is untouched
        """
        if end_date < source_date:
            raise TemplateRangeError(source_date, end_date)
        return AvailabilityTemplateService.apply_to_dates(
            draft, source_date, _targets(source_date, end_date, include_sundays),
            keep_weekends_closed, close_holidays,
        )

    @staticmethod
    def apply_week_to_month(
        draft: AvailabilityDraft,
        week_date: date,
        keep_weekends_closed: bool = False,
        close_holidays: bool = False,
    ) -> List[date]:
        """
        Copy each weekday of the week containing week_date onto the same weekday
        of every other week of that date's month.

        Monday to Saturday are copied; Sundays are left alone. Weekdays of the
        source week that are not loaded in the draft are skipped.
        """
        first, last = month_bounds(week_date)
        changed: List[date] = []
        for source in week_dates(week_date, include_sunday=False):
            if source not in draft.days:
                continue
            targets = []
            target = source - timedelta(weeks=5)
            while target <= last:
                if target >= first and target != source:
                    targets.append(target)
                target += timedelta(weeks=1)
            changed.extend(
                AvailabilityTemplateService.apply_to_dates(
                    draft, source, targets, keep_weekends_closed, close_holidays
                )
            )
        return sorted(changed)

    @staticmethod
    def reset_week(draft: AvailabilityDraft, week_date: date) -> List[date]:
        """
        Reset Monday to Saturday of a week to the default pattern.

        The default pattern is all closed, so this is the same edit as close_week.
        """
        return AvailabilityTemplateService.close_week(draft, week_date)

    @staticmethod
    def close_week(draft: AvailabilityDraft, week_date: date) -> List[date]:
        """Close every slot from Monday to Saturday of a week. Sunday is untouched."""
        days = week_dates(week_date, include_sunday=False)
        for day in days:
            AvailabilityTemplateService.set_all_slots(draft, day, False)
        return days
