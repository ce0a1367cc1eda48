# pyright: reportMissingTypeStubs=false
"""
Availability API endpoints for staff.

The grid endpoints read reconciled days and save edited days; the template
endpoints apply a day or week pattern to other dates and return a preview,
optionally saving it. Every endpoint works on the current user's own data.
"""

import logging
from datetime import date as date_type
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from auth.dependencies import UserContext, require_staff
from core.database import get_db
from services.availability_service import AvailabilityService, WeeklyInterval
from services.availability_store import AvailabilityStore
from services.availability_sync_service import AvailabilitySyncService, SyncResult
from services.availability_template_service import AvailabilityTemplateService, TemplateRangeError
from shared_types.availability import AvailabilityDraft, DaySlotView, SlotView
from utils.datetime_utils import format_time, month_bounds, week_dates
from api.responses import (
    AvailabilityGridResponse, BlockedDateListResponse, BlockedDateResponse,
    DayAvailabilityResponse, SlotResponse, SyncResultResponse, TemplatePreviewResponse,
    WeeklyIntervalResponse, WeeklyScheduleResponse, WeekSummaryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_GRID_DAYS = 186


# ===== Request Models =====

class DayPattern(BaseModel):
    """Open/closed value per slot time of one date."""
    date: date_type
    slots: Dict[str, bool]


class SaveGridRequest(BaseModel):
    days: List[DayPattern]

    @field_validator('days')
    @classmethod
    def validate_days(cls, v: List[DayPattern]) -> List[DayPattern]:
        if not v:
            raise ValueError('At least one day is required')
        dates = [day.date for day in v]
        if len(set(dates)) != len(dates):
            raise ValueError('Each date may appear only once')
        return v


class TemplateOptions(BaseModel):
    keep_weekends_closed: bool = False
    close_holidays: bool = False
    save: bool = False
    draft_days: List[DayPattern] = []  # Unsaved edits applied before the template


class MonthTemplateRequest(TemplateOptions):
    source_date: date_type
    month_date: date_type
    include_sundays: bool = True


class RangeTemplateRequest(TemplateOptions):
    source_date: date_type
    end_date: date_type
    include_sundays: bool = True


class WeekTemplateRequest(TemplateOptions):
    week_date: date_type


class TimeInterval(BaseModel):
    """Time interval model for the weekly schedule."""
    day_of_week: int  # 0=Monday ... 6=Sunday
    start_time: str  # Format: "HH:MM"
    end_time: str    # Format: "HH:MM"
    is_available: bool = True


class WeeklyScheduleRequest(BaseModel):
    intervals: List[TimeInterval]


class BlockedDateRequest(BaseModel):
    blocked_date: date_type
    activity: str


# ===== Helpers =====

def _slot_response(slot: SlotView) -> SlotResponse:
    return SlotResponse(
        time=slot.time, is_open=slot.is_open, is_reserved=slot.is_reserved, state=slot.state.value
    )


def _day_response(view: DaySlotView) -> DayAvailabilityResponse:
    return DayAvailabilityResponse(
        date=view.date,
        is_blocked=view.is_blocked,
        blocked_reason=view.blocked_reason,
        slots=[_slot_response(slot) for slot in view.slots],
    )


def _preview_day(store: AvailabilityStore, draft: AvailabilityDraft, day: date_type) -> DayAvailabilityResponse:
    """Draft values layered with the stored block and reservations of a day."""
    stored = store.day_view(day)
    pattern = draft.pattern(day)
    slots = tuple(
        SlotView(
            time=slot.time,
            is_open=pattern.get(slot.time, False) and not stored.is_blocked,
            is_reserved=slot.is_reserved,
        )
        for slot in stored.slots
    )
    return _day_response(DaySlotView(
        date=day, slots=slots, is_blocked=stored.is_blocked, blocked_reason=stored.blocked_reason
    ))


def _sync_response(result: SyncResult) -> SyncResultResponse:
    return SyncResultResponse(**result.to_dict())


def _check_window(start: date_type, end: date_type) -> None:
    if (end - start).days >= MAX_GRID_DAYS:
        raise ValueError(f"Date window is limited to {MAX_GRID_DAYS} days")


def _load_draft(
    store: AvailabilityStore,
    dates: List[date_type],
    overlays: List[DayPattern],
) -> AvailabilityDraft:
    all_dates = dates + [day.date for day in overlays]
    _check_window(min(all_dates), max(all_dates))
    draft = store.draft(min(all_dates), max(all_dates))
    overlay_draft = AvailabilitySyncService.parse_draft_payload(
        {day.date: day.slots for day in overlays}
    )
    for day in overlay_draft.dates():
        merged = draft.pattern(day)
        merged.update(overlay_draft.pattern(day))
        draft.set_pattern(day, merged)
    return draft


def _finish_template(
    db: Session,
    owner_id: int,
    store: AvailabilityStore,
    draft: AvailabilityDraft,
    changed: List[date_type],
    options: TemplateOptions,
) -> TemplatePreviewResponse:
    touched = sorted(set(changed) | {day.date for day in options.draft_days})
    days = [_preview_day(store, draft, day) for day in touched]
    sync = None
    if options.save and touched:
        to_save = AvailabilityDraft(days={day: draft.pattern(day) for day in touched})
        sync = _sync_response(AvailabilitySyncService.save_draft(db, owner_id, to_save))
        store.invalidate()
    return TemplatePreviewResponse(
        changed_dates=changed, days=days, saved=sync is not None, sync=sync
    )


# ===== Grid =====

@router.get("/grid", summary="Reconciled availability for a date window")
async def get_grid(
    start: date_type = Query(...),
    end: date_type = Query(...),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> AvailabilityGridResponse:
    if end < start:
        raise ValueError("End date must be on or after start date")
    _check_window(start, end)
    store = AvailabilityStore(db, current_user.user_id).refresh(start, end)
    return AvailabilityGridResponse(days=[_day_response(view) for view in store.days(start, end)])


@router.put("/grid", summary="Save edited days")
async def save_grid(
    request: SaveGridRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> SyncResultResponse:
    """
    Persist every slot of the submitted days.

    A partial failure is reported with the dates that still need saving.
    """
    draft = AvailabilitySyncService.parse_draft_payload(
        {day.date: day.slots for day in request.days}
    )
    result = AvailabilitySyncService.save_draft(db, current_user.user_id, draft)
    return _sync_response(result)


# ===== Templates =====

@router.post("/templates/month", summary="Apply a day to a whole month")
async def apply_month_template(
    request: MonthTemplateRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> TemplatePreviewResponse:
    first, last = month_bounds(request.month_date)
    store = AvailabilityStore(db, current_user.user_id)
    draft = _load_draft(store, [request.source_date, first, last], request.draft_days)
    changed = AvailabilityTemplateService.apply_to_month(
        draft, request.source_date, request.month_date,
        request.keep_weekends_closed, request.close_holidays, request.include_sundays,
    )
    return _finish_template(db, current_user.user_id, store, draft, changed, request)


@router.post("/templates/range", summary="Apply a day to every date up to an end date")
async def apply_range_template(
    request: RangeTemplateRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> TemplatePreviewResponse:
    if request.end_date < request.source_date:
        raise TemplateRangeError(request.source_date, request.end_date)
    store = AvailabilityStore(db, current_user.user_id)
    draft = _load_draft(store, [request.source_date, request.end_date], request.draft_days)
    changed = AvailabilityTemplateService.apply_to_range(
        draft, request.source_date, request.end_date,
        request.keep_weekends_closed, request.close_holidays, request.include_sundays,
    )
    return _finish_template(db, current_user.user_id, store, draft, changed, request)


@router.post("/templates/week-to-month", summary="Apply a week to every week of its month")
async def apply_week_to_month_template(
    request: WeekTemplateRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> TemplatePreviewResponse:
    first, last = month_bounds(request.week_date)
    week = week_dates(request.week_date)
    store = AvailabilityStore(db, current_user.user_id)
    draft = _load_draft(store, [first, last, week[0], week[-1]], request.draft_days)
    changed = AvailabilityTemplateService.apply_week_to_month(
        draft, request.week_date, request.keep_weekends_closed, request.close_holidays,
    )
    return _finish_template(db, current_user.user_id, store, draft, changed, request)


@router.post("/templates/reset-week", summary="Reset Monday to Saturday to the default week")
async def reset_week_template(
    request: WeekTemplateRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> TemplatePreviewResponse:
    week = week_dates(request.week_date)
    store = AvailabilityStore(db, current_user.user_id)
    draft = _load_draft(store, [week[0], week[-1]], request.draft_days)
    changed = AvailabilityTemplateService.reset_week(draft, request.week_date)
    return _finish_template(db, current_user.user_id, store, draft, changed, request)


@router.post("/templates/close-week", summary="Close Monday to Saturday of a week")
async def close_week_template(
    request: WeekTemplateRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> TemplatePreviewResponse:
    week = week_dates(request.week_date)
    store = AvailabilityStore(db, current_user.user_id)
    draft = _load_draft(store, [week[0], week[-1]], request.draft_days)
    changed = AvailabilityTemplateService.close_week(draft, request.week_date)
    return _finish_template(db, current_user.user_id, store, draft, changed, request)


# ===== Weekly schedule =====

def _weekly_response(rows) -> WeeklyScheduleResponse:
    return WeeklyScheduleResponse(intervals=[
        WeeklyIntervalResponse(
            id=row.id,
            day_of_week=row.day_of_week,
            start_time=format_time(row.start_time),
            end_time=format_time(row.end_time),
            is_available=row.is_available,
        )
        for row in rows
    ])


@router.get("/weekly", summary="Get the default weekly schedule")
async def get_weekly_schedule(
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> WeeklyScheduleResponse:
    return _weekly_response(AvailabilityService.get_weekly_schedule(db, current_user.user_id))


@router.put("/weekly", summary="Replace the default weekly schedule")
async def update_weekly_schedule(
    request: WeeklyScheduleRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> WeeklyScheduleResponse:
    """
    Replace the entire weekly schedule with the provided intervals.

    Overlapping intervals on the same weekday are rejected.
    """
    rows = AvailabilityService.replace_weekly_schedule(
        db,
        current_user.user_id,
        [WeeklyInterval(**interval.model_dump()) for interval in request.intervals],
    )
    return _weekly_response(rows)


# ===== Blocked dates =====

@router.get("/blocked-dates", summary="List blocked dates")
async def list_blocked_dates(
    start: Optional[date_type] = Query(None),
    end: Optional[date_type] = Query(None),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> BlockedDateListResponse:
    rows = AvailabilityService.list_blocked_dates(db, current_user.user_id, start, end)
    return BlockedDateListResponse(blocked_dates=[
        BlockedDateResponse(id=row.id, blocked_date=row.blocked_date, activity=row.activity)
        for row in rows
    ])


@router.post("/blocked-dates", summary="Block a date", status_code=status.HTTP_201_CREATED)
async def add_blocked_date(
    request: BlockedDateRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> BlockedDateResponse:
    row = AvailabilityService.add_blocked_date(
        db, current_user.user_id, request.blocked_date, request.activity
    )
    return BlockedDateResponse(id=row.id, blocked_date=row.blocked_date, activity=row.activity)


@router.delete("/blocked-dates/{blocked_date_id}", summary="Unblock a date",
               status_code=status.HTTP_204_NO_CONTENT)
async def remove_blocked_date(
    blocked_date_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> Response:
    AvailabilityService.remove_blocked_date(db, current_user.user_id, blocked_date_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ===== Summary =====

@router.get("/week-summary", summary="Fill rate of a week")
async def get_week_summary(
    date: date_type = Query(...),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> WeekSummaryResponse:
    store = AvailabilityStore(db, current_user.user_id)
    summary = AvailabilityService.week_fill_rate(store, date)
    return WeekSummaryResponse(**summary.to_dict())
