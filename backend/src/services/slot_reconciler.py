"""
Slot reconciliation: turns raw availability rows into per-day slot views.

This is the only place that decides whether a slot is open. Precedence, from
lowest to highest:

1. every catalog slot starts closed
2. weekly schedule rows for the date's weekday
3. date override rows for the date (replace the weekly value outright)
4. a blocked date closes every slot
5. live appointments mark their slot reserved, on top of the base state

Everything here is pure: callers fetch the rows, this module only combines them.
"""

from datetime import date, time
from typing import Dict, Iterable, Optional, Protocol, Sequence, Set

from shared_types.availability import DaySlotView, SlotView
from utils.datetime_utils import iter_dates
from utils.slot_catalog import catalog_time_objects, catalog_times


class AvailabilityInterval(Protocol):
    """Shape shared by weekly schedule rows and date override rows."""

    start_time: time
    end_time: time
    is_available: bool


def interval_covers(start: time, end: time, slot: time) -> bool:
    """
    Whether an interval covers a slot.

    Intervals are half-open (start <= slot < end). A zero-length interval
    (start == end) covers exactly its own slot, which is how per-slot override
    rows are stored.
    """
    if start == end:
        return slot == start
    return start <= slot < end


def _rule_sort_key(rule: AvailabilityInterval) -> tuple:
    return (rule.start_time, rule.end_time, getattr(rule, "id", None) or 0)


class SlotReconciler:
    """Pure functions combining availability rows into DaySlotViews."""

    @staticmethod
    def _apply_intervals(
        states: Dict[time, bool],
        intervals: Iterable[AvailabilityInterval],
    ) -> None:
        for interval in sorted(intervals, key=_rule_sort_key):
            for slot in states:
                if interval_covers(interval.start_time, interval.end_time, slot):
                    states[slot] = bool(interval.is_available)

    @staticmethod
    def reconcile_day(
        target_date: date,
        recurring_rules: Iterable,
        overrides: Iterable,
        is_blocked: bool = False,
        blocked_reason: Optional[str] = None,
        reserved_times: Optional[Set[str]] = None,
    ) -> DaySlotView:
        """
        Build the slot view of one date.

        Args:
            target_date: Date to reconcile
            recurring_rules: Weekly schedule rows; rows of other weekdays are ignored
            overrides: Date override rows; rows of other dates are ignored
            is_blocked: Whether the date is a blocked date
            blocked_reason: Activity of the blocked date, shown on the staff grid
            reserved_times: "HH:MM" times held by non-cancelled appointments

        Returns:
            DaySlotView with one SlotView per catalog time, in catalog order
        """
        weekday = target_date.weekday()
        states: Dict[time, bool] = {slot: False for slot in catalog_time_objects()}

        SlotReconciler._apply_intervals(
            states, [rule for rule in recurring_rules if rule.day_of_week == weekday]
        )
        SlotReconciler._apply_intervals(
            states, [row for row in overrides if row.specific_date == target_date]
        )

        if is_blocked:
            states = {slot: False for slot in states}

        reserved = reserved_times or set()
        slots = tuple(
            SlotView(time=label, is_open=states[slot], is_reserved=label in reserved)
            for label, slot in zip(catalog_times(), catalog_time_objects())
        )
        return DaySlotView(
            date=target_date,
            slots=slots,
            is_blocked=is_blocked,
            blocked_reason=blocked_reason if is_blocked else None,
        )

    @staticmethod
    def closed_day(target_date: date) -> DaySlotView:
        """All-closed view, used for dates nothing was loaded for."""
        return DaySlotView(
            date=target_date,
            slots=tuple(SlotView(time=label, is_open=False) for label in catalog_times()),
        )

    @staticmethod
    def reconcile_range(
        start: date,
        end: date,
        recurring_rules: Sequence,
        overrides: Sequence,
        blocked: Optional[Dict[date, str]] = None,
        reserved: Optional[Dict[date, Set[str]]] = None,
    ) -> list[DaySlotView]:
        """
        Reconcile every date from start to end (inclusive).

        Args:
            blocked: Blocked date -> activity
            reserved: Date -> reserved "HH:MM" times
        """
        blocked = blocked or {}
        reserved = reserved or {}
        overrides_by_date: Dict[date, list] = {}
        for row in overrides:
            overrides_by_date.setdefault(row.specific_date, []).append(row)

        return [
            SlotReconciler.reconcile_day(
                day,
                recurring_rules,
                overrides_by_date.get(day, []),
                is_blocked=day in blocked,
                blocked_reason=blocked.get(day),
                reserved_times=reserved.get(day, set()),
            )
            for day in iter_dates(start, end)
        ]
