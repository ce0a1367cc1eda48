"""
Patient-facing slot selection.

Patients only ever see slots that are open and not reserved, on dates that
are neither past nor beyond the booking window. Everything is read from an
AvailabilityStore so the patient view and the staff grid always agree.
"""

from datetime import date
from typing import List, Optional

from core.config import BOOKING_WINDOW_MONTHS
from services.availability_store import AvailabilityStore
from utils.datetime_utils import add_months, iter_dates, local_today


class PatientSlotSelector:
    """Read-only queries used by the public booking API."""

    @staticmethod
    def booking_window(today: Optional[date] = None) -> tuple[date, date]:
        """First and last date a patient may book."""
        today = today or local_today()
        return today, add_months(today, BOOKING_WINDOW_MONTHS)

    @staticmethod
    def _ensure_loaded(store: AvailabilityStore, start: date, end: date) -> None:
        window = store.window
        if window is None or start < window[0] or end > window[1]:
            store.refresh(start, end)

    @staticmethod
    def bookable_times(store: AvailabilityStore, day: date, today: Optional[date] = None) -> List[str]:
        """
        Slot times a patient can pick on a date, in catalog order.

        Past dates, dates beyond the booking window and blocked dates yield
        an empty list.
        """
        first, last = PatientSlotSelector.booking_window(today)
        if day < first or day > last:
            return []
        PatientSlotSelector._ensure_loaded(store, day, day)
        view = store.day_view(day)
        if view.is_blocked:
            return []
        return view.bookable_times

    @staticmethod
    def bookable_dates(
        store: AvailabilityStore,
        start: date,
        end: date,
        today: Optional[date] = None,
    ) -> List[date]:
        """
        Dates between start and end (inclusive) with at least one bookable slot.

        Raises:
            ValueError: If end is before start
            AvailabilityLoadError: If availability cannot be loaded
        """
        if end < start:
            raise ValueError("End date must be on or after start date")
        first, last = PatientSlotSelector.booking_window(today)
        start = max(start, first)
        end = min(end, last)
        if end < start:
            return []
        PatientSlotSelector._ensure_loaded(store, start, end)
        return [
            day for day in iter_dates(start, end)
            if not store.day_view(day).is_blocked and store.day_view(day).bookable_times
        ]

    @staticmethod
    def is_date_selectable(store: AvailabilityStore, day: date, today: Optional[date] = None) -> bool:
        return bool(PatientSlotSelector.bookable_times(store, day, today))
