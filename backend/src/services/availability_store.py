"""
Availability store: the single read path for reconciled availability.

The store loads a window of a staff user's availability rows once and serves
reconciled day views from that snapshot. Both the staff grid and the public
booking endpoints read through it, so they always agree on what is open.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.constants import APPOINTMENT_STATUS_CANCELLED
from models import Appointment, BlockedDate, RecurringAvailability, SpecificDateAvailability
from services.slot_reconciler import SlotReconciler
from shared_types.availability import AvailabilityDraft, DaySlotView
from utils.datetime_utils import iter_dates
from utils.slot_catalog import normalize_time

logger = logging.getLogger(__name__)


class AvailabilityLoadError(Exception):
    """Raised when availability rows cannot be fetched from the database."""

    def __init__(self, owner_id: int, start: date, end: date, reason: str):
        self.owner_id = owner_id
        self.start = start
        self.end = end
        self.reason = reason
        super().__init__(
            f"Could not load availability for owner {owner_id} "
            f"from {start.isoformat()} to {end.isoformat()}: {reason}"
        )


class AvailabilityStore:
    """
    Read-through cache of one staff user's availability for a date window.

    Usage:
        store = AvailabilityStore(db, owner_id)
        store.refresh(start, end)
        view = store.day_view(some_date)

    Dates outside the loaded window are reported all-closed; nothing is ever
    shown as bookable without having been loaded.
    """

    def __init__(self, db: Session, owner_id: int):
        self.db = db
        self.owner_id = owner_id
        self._window: Optional[Tuple[date, date]] = None
        self._rules: List[RecurringAvailability] = []
        self._overrides: Dict[date, List[SpecificDateAvailability]] = {}
        self._blocked: Dict[date, str] = {}
        self._reserved: Dict[date, Set[str]] = {}
        self._views: Dict[date, DaySlotView] = {}

    @property
    def window(self) -> Optional[Tuple[date, date]]:
        return self._window

    def invalidate(self) -> None:
        """Drop the loaded snapshot; the next refresh hits the database."""
        self._window = None
        self._rules = []
        self._overrides = {}
        self._blocked = {}
        self._reserved = {}
        self._views = {}

    def refresh(self, start: date, end: date) -> "AvailabilityStore":
        """
        Load every row needed to reconcile [start, end].

        A refresh for the window already loaded is a no-op; call invalidate()
        first to force a reload after a write.

        Raises:
            ValueError: If end is before start
            AvailabilityLoadError: If the database query fails
        """
        if end < start:
            raise ValueError("End date must be on or after start date")
        if self._window == (start, end):
            return self

        try:
            rules = self.db.query(RecurringAvailability).filter(
                RecurringAvailability.owner_id == self.owner_id
            ).all()

            overrides = self.db.query(SpecificDateAvailability).filter(
                SpecificDateAvailability.owner_id == self.owner_id,
                SpecificDateAvailability.specific_date >= start,
                SpecificDateAvailability.specific_date <= end,
            ).all()

            blocked = self.db.query(BlockedDate).filter(
                BlockedDate.owner_id == self.owner_id,
                BlockedDate.blocked_date >= start,
                BlockedDate.blocked_date <= end,
            ).all()

            appointments = self.db.query(
                Appointment.appointment_date, Appointment.appointment_time
            ).filter(
                Appointment.owner_id == self.owner_id,
                Appointment.appointment_date >= start,
                Appointment.appointment_date <= end,
                Appointment.status != APPOINTMENT_STATUS_CANCELLED,
            ).all()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to load availability for owner {self.owner_id}: {e}")
            self.invalidate()
            raise AvailabilityLoadError(self.owner_id, start, end, str(e)) from e

        self.invalidate()
        self._rules = list(rules)
        for row in overrides:
            self._overrides.setdefault(row.specific_date, []).append(row)
        self._blocked = {row.blocked_date: row.activity for row in blocked}
        for appointment_date, appointment_time in appointments:
            self._reserved.setdefault(appointment_date, set()).add(normalize_time(appointment_time))
        self._window = (start, end)
        return self

    def _in_window(self, day: date) -> bool:
        return self._window is not None and self._window[0] <= day <= self._window[1]

    def day_view(self, day: date) -> DaySlotView:
        """Reconciled view of one date (all closed outside the loaded window)."""
        if not self._in_window(day):
            return SlotReconciler.closed_day(day)
        view = self._views.get(day)
        if view is None:
            view = SlotReconciler.reconcile_day(
                day,
                self._rules,
                self._overrides.get(day, []),
                is_blocked=day in self._blocked,
                blocked_reason=self._blocked.get(day),
                reserved_times=self._reserved.get(day, set()),
            )
            self._views[day] = view
        return view

    def days(self, start: date, end: date) -> List[DaySlotView]:
        return [self.day_view(day) for day in iter_dates(start, end)]

    def is_bookable(self, day: date, time_str: str) -> bool:
        """
        Whether a patient may book a slot right now.

        The slot must be a catalog slot, open, not reserved and not on a
        blocked date, all according to the loaded snapshot.
        """
        view = self.day_view(day)
        if view.is_blocked:
            return False
        try:
            slot = view.slot(normalize_time(time_str))
        except ValueError:
            return False
        return slot is not None and slot.is_bookable

    def draft(self, start: date, end: date) -> AvailabilityDraft:
        """
        Editable draft of [start, end], seeded from the reconciled views.

        Blocked dates are seeded with the pattern they would have without the
        block, so saving a draft never bakes a block into override rows.
        """
        self.refresh(start, end)
        views = [
            SlotReconciler.reconcile_day(
                day, self._rules, self._overrides.get(day, [])
            )
            for day in iter_dates(start, end)
        ]
        return AvailabilityDraft.from_views(views)

    def is_blocked(self, day: date) -> bool:
        return self._in_window(day) and day in self._blocked
