"""
Availability service for the weekly schedule, blocked dates and week summaries.

The weekly schedule (recurring rules) is the default week of a staff user.
Date overrides saved from the grid take precedence over it, and blocked dates
close whole days. Reading reconciled availability goes through
AvailabilityStore; this module only manages the rows themselves.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, time
from typing import Dict, List, Optional, Sequence, Set

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import SLOT_DAY_START, SLOT_STEP_MINUTES
from core.constants import MAX_ACTIVITY_LENGTH
from models import BlockedDate, RecurringAvailability
from services.availability_store import AvailabilityStore
from services.slot_reconciler import interval_covers
from utils.datetime_utils import format_time, parse_time_string, week_dates
from utils.slot_catalog import catalog_time_objects

logger = logging.getLogger(__name__)

DAY_NAMES = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']


@dataclass
class WeeklyInterval:
    """One interval of the default week, as submitted by staff."""
    day_of_week: int
    start_time: str  # Format: "HH:MM"
    end_time: str  # Format: "HH:MM"
    is_available: bool = True


@dataclass
class WeekSummary:
    """Fill rate of Monday to Saturday of one week."""
    week_start: date
    fill_rate: int  # Percentage of open slots that are reserved
    open_slots: int
    reserved_slots: int
    open_days: int

    def to_dict(self) -> dict[str, object]:
        return {
            "week_start": self.week_start.isoformat(),
            "fill_rate": self.fill_rate,
            "open_slots": self.open_slots,
            "reserved_slots": self.reserved_slots,
            "open_days": self.open_days,
        }


def _minutes_from_day_start(t: time) -> int:
    start = parse_time_string(SLOT_DAY_START)
    return (t.hour * 60 + t.minute) - (start.hour * 60 + start.minute)


def _covered_slots(start: time, end: time) -> Set[time]:
    return {slot for slot in catalog_time_objects() if interval_covers(start, end, slot)}


class AvailabilityService:
    """
    Service class for weekly schedule and blocked date management.

    All methods are scoped to one staff user (owner_id).
    """

    @staticmethod
    def _validate_interval(interval: WeeklyInterval) -> tuple[time, time]:
        """
        Parse and validate one weekly interval.

        Raises:
            ValueError: If the weekday or times are invalid
        """
        if not 0 <= interval.day_of_week <= 6:
            raise ValueError(f"Invalid day of week: {interval.day_of_week}")

        day_name = DAY_NAMES[interval.day_of_week].capitalize()
        start = parse_time_string(interval.start_time)
        end = parse_time_string(interval.end_time)

        if end < start:
            raise ValueError(
                f"Invalid time range on {day_name}: {format_time(start)}-{format_time(end)}"
            )
        for t in (start, end):
            offset = _minutes_from_day_start(t)
            if offset < 0 or offset % SLOT_STEP_MINUTES != 0:
                raise ValueError(
                    f"{format_time(t)} on {day_name} is not on the {SLOT_STEP_MINUTES}-minute slot grid"
                )
        if start not in catalog_time_objects():
            raise ValueError(f"{format_time(start)} on {day_name} is outside opening hours")
        return start, end

    @staticmethod
    def validate_weekly_schedule(intervals: Sequence[WeeklyInterval]) -> List[RecurringAvailability]:
        """
        Validate a full weekly schedule and build (unsaved) rows for it.

        Two intervals of the same weekday may not cover a common slot.

        Raises:
            ValueError: On an invalid or overlapping interval
        """
        rows: List[RecurringAvailability] = []
        covered_by_day: Dict[int, List[tuple[Set[time], str]]] = {}
        for interval in intervals:
            start, end = AvailabilityService._validate_interval(interval)
            covered = _covered_slots(start, end)
            label = f"{format_time(start)}-{format_time(end)}"
            for other_covered, other_label in covered_by_day.get(interval.day_of_week, []):
                if covered & other_covered:
                    raise ValueError(
                        f"Overlapping intervals on {DAY_NAMES[interval.day_of_week].capitalize()}: "
                        f"{other_label} and {label}"
                    )
            covered_by_day.setdefault(interval.day_of_week, []).append((covered, label))
            rows.append(RecurringAvailability(
                day_of_week=interval.day_of_week,
                start_time=start,
                end_time=end,
                is_available=interval.is_available,
            ))
        return rows

    @staticmethod
    def replace_weekly_schedule(
        db: Session,
        owner_id: int,
        intervals: Sequence[WeeklyInterval],
    ) -> List[RecurringAvailability]:
        """
        Replace a staff user's whole weekly schedule.

        Everything is validated before the existing rows are deleted, and the
        delete and inserts are committed together.

        Raises:
            ValueError: On an invalid or overlapping interval (nothing is changed)
        """
        rows = AvailabilityService.validate_weekly_schedule(intervals)

        db.query(RecurringAvailability).filter(
            RecurringAvailability.owner_id == owner_id
        ).delete()
        for row in rows:
            row.owner_id = owner_id
            db.add(row)
        db.commit()

        logger.info(f"Replaced weekly schedule for owner {owner_id}: {len(rows)} interval(s)")
        return AvailabilityService.get_weekly_schedule(db, owner_id)

    @staticmethod
    def get_weekly_schedule(db: Session, owner_id: int) -> List[RecurringAvailability]:
        """Weekly schedule rows ordered by weekday then start time."""
        return db.query(RecurringAvailability).filter(
            RecurringAvailability.owner_id == owner_id
        ).order_by(
            RecurringAvailability.day_of_week,
            RecurringAvailability.start_time,
            RecurringAvailability.end_time,
            RecurringAvailability.id,
        ).all()

    @staticmethod
    def add_blocked_date(db: Session, owner_id: int, blocked_date: date, activity: str) -> BlockedDate:
        """
        Block a whole date.

        Raises:
            ValueError: If the activity is empty
            HTTPException: 409 if the date is already blocked
        """
        activity = (activity or "").strip()
        if not activity:
            raise ValueError("Activity is required to block a date")
        if len(activity) > MAX_ACTIVITY_LENGTH:
            raise ValueError(f"Activity is limited to {MAX_ACTIVITY_LENGTH} characters")

        blocked = BlockedDate(owner_id=owner_id, blocked_date=blocked_date, activity=activity)
        db.add(blocked)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"{blocked_date.isoformat()} is already blocked"
            )
        db.refresh(blocked)
        logger.info(f"Blocked {blocked_date.isoformat()} for owner {owner_id}: {activity}")
        return blocked

    @staticmethod
    def list_blocked_dates(
        db: Session,
        owner_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[BlockedDate]:
        query = db.query(BlockedDate).filter(BlockedDate.owner_id == owner_id)
        if start is not None:
            query = query.filter(BlockedDate.blocked_date >= start)
        if end is not None:
            query = query.filter(BlockedDate.blocked_date <= end)
        return query.order_by(BlockedDate.blocked_date).all()

    @staticmethod
    def remove_blocked_date(db: Session, owner_id: int, blocked_date_id: int) -> None:
        """
        Unblock a date.

        Raises:
            HTTPException: 404 if the blocked date does not exist for this owner
        """
        blocked = db.query(BlockedDate).filter(
            BlockedDate.id == blocked_date_id,
            BlockedDate.owner_id == owner_id,
        ).first()
        if not blocked:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Blocked date not found"
            )
        db.delete(blocked)
        db.commit()

    @staticmethod
    def week_fill_rate(store: AvailabilityStore, week_date: date) -> WeekSummary:
        """
        Share of open slots that are booked, Monday to Saturday of a week.

        Returns 0% when the week has no open slot. The percentage is rounded
        half up to an integer.

        Raises:
            AvailabilityLoadError: If the week cannot be loaded
        """
        days = week_dates(week_date, include_sunday=False)
        store.refresh(days[0], days[-1])
        views = [store.day_view(day) for day in days]

        open_slots = sum(view.open_count for view in views)
        reserved_slots = sum(view.reserved_open_count for view in views)
        fill_rate = math.floor(reserved_slots * 100 / open_slots + 0.5) if open_slots else 0
        return WeekSummary(
            week_start=days[0],
            fill_rate=fill_rate,
            open_slots=open_slots,
            reserved_slots=reserved_slots,
            open_days=sum(1 for view in views if view.open_count > 0),
        )
