"""
Shared response models for API endpoints.

This module contains Pydantic response models that are shared across
multiple API endpoints to ensure consistency and reduce duplication.
"""

from datetime import datetime, date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class PatientResponse(BaseModel):
    """Response model for patient information."""
    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[date] = None  # Serialized to YYYY-MM-DD in JSON
    notes: Optional[str] = None
    status: str
    created_at: datetime


class PatientListResponse(BaseModel):
    """Response model for listing patients."""
    patients: List[PatientResponse]


class PatientImportResponse(BaseModel):
    """Outcome of a CSV import."""
    created: int
    updated: int
    errors: List[Dict[str, Any]]


class AppointmentResponse(BaseModel):
    """Response model for appointment information."""
    id: int
    owner_id: int
    patient_id: int
    patient_name: str
    appointment_date: date
    appointment_time: str  # Format: "HH:MM"
    status: str
    services: List[str]
    notes: Optional[str] = None
    created_at: datetime


class AppointmentListResponse(BaseModel):
    """Response model for listing appointments."""
    appointments: List[AppointmentResponse]


class BookingResponse(BaseModel):
    """Response model for a committed booking."""
    appointment: AppointmentResponse
    warnings: List[str] = []


class SlotResponse(BaseModel):
    """One catalog slot of a day."""
    time: str
    is_open: bool
    is_reserved: bool
    state: str  # "open", "closed" or "reserved"


class DayAvailabilityResponse(BaseModel):
    """Reconciled availability of one date."""
    date: date
    is_blocked: bool
    blocked_reason: Optional[str] = None
    slots: List[SlotResponse]


class AvailabilityGridResponse(BaseModel):
    """Staff grid: one entry per date of the requested window."""
    days: List[DayAvailabilityResponse]


class SyncResultResponse(BaseModel):
    """Outcome of a successful save."""
    rows_written: int
    chunk_count: int
    dates: List[date]
    stale_rows_removed: int = 0


class TemplatePreviewResponse(BaseModel):
    """Days after a template operation; saved only when requested."""
    changed_dates: List[date]
    days: List[DayAvailabilityResponse]
    saved: bool = False
    sync: Optional[SyncResultResponse] = None


class WeeklyIntervalResponse(BaseModel):
    """One interval of the default weekly schedule."""
    id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool


class WeeklyScheduleResponse(BaseModel):
    """Default weekly schedule of the current staff user."""
    intervals: List[WeeklyIntervalResponse]


class BlockedDateResponse(BaseModel):
    id: int
    blocked_date: date
    activity: str


class BlockedDateListResponse(BaseModel):
    blocked_dates: List[BlockedDateResponse]


class WeekSummaryResponse(BaseModel):
    """Fill rate of Monday to Saturday of a week."""
    week_start: date
    fill_rate: int
    open_slots: int
    reserved_slots: int
    open_days: int


class BookableDatesResponse(BaseModel):
    """Dates a patient can pick."""
    dates: List[date]


class BookableTimesResponse(BaseModel):
    """Slot times a patient can pick on a date."""
    date: date
    times: List[str]
