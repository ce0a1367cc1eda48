# pyright: reportMissingTypeStubs=false
"""
Public booking API endpoints.

Patients pick a date, then a slot, then submit their details; no account is
needed. Everything shown here is read through the same availability store as
the staff grid, so a slot is only offered when it is open and not reserved.
"""

import logging
from datetime import date as date_type
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from core.database import get_db
from models import User
from services.appointment_service import AppointmentService
from services.availability_store import AvailabilityStore
from services.patient_service import PatientService
from services.patient_slot_selector import PatientSlotSelector
from utils.patient_validators import validate_birth_date, validate_email_optional, validate_patient_name
from utils.phone_validator import validate_phone
from api.appointments import appointment_to_response
from api.responses import BookableDatesResponse, BookableTimesResponse, BookingResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class PublicBookingRequest(BaseModel):
    """Patient details and the chosen slot."""
    first_name: str
    last_name: str
    email: str
    phone: str
    birth_date: Optional[date_type] = None
    appointment_date: date_type
    appointment_time: str  # Format: "HH:MM"
    services: List[str]
    notes: Optional[str] = None

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_names(cls, v: str) -> str:
        return validate_patient_name(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        email = validate_email_optional(v)
        if not email:
            raise ValueError('Email is required')
        return email

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return validate_phone(v)

    @field_validator('birth_date', mode='before')
    @classmethod
    def validate_birth(cls, v: Union[str, date_type, None]) -> Optional[date_type]:
        return validate_birth_date(v)


def _get_bookable_owner(db: Session, owner_id: int) -> User:
    """
    Raises:
        HTTPException: 404 if the staff user does not exist or is inactive
    """
    owner = db.query(User).filter(User.id == owner_id, User.is_active == True).first()  # noqa: E712
    if not owner:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Calendar not found"
        )
    return owner


@router.get("/owners/{owner_id}/dates", summary="Dates with at least one free slot")
async def get_bookable_dates(
    owner_id: int,
    start: date_type = Query(...),
    end: date_type = Query(...),
    db: Session = Depends(get_db),
) -> BookableDatesResponse:
    _get_bookable_owner(db, owner_id)
    store = AvailabilityStore(db, owner_id)
    return BookableDatesResponse(dates=PatientSlotSelector.bookable_dates(store, start, end))


@router.get("/owners/{owner_id}/slots", summary="Free slots of a date")
async def get_bookable_times(
    owner_id: int,
    date: date_type = Query(...),
    db: Session = Depends(get_db),
) -> BookableTimesResponse:
    _get_bookable_owner(db, owner_id)
    store = AvailabilityStore(db, owner_id)
    return BookableTimesResponse(date=date, times=PatientSlotSelector.bookable_times(store, date))


@router.post("/owners/{owner_id}/appointments", summary="Book a slot",
             status_code=status.HTTP_201_CREATED)
async def create_booking(
    owner_id: int,
    request: PublicBookingRequest,
    db: Session = Depends(get_db),
) -> BookingResponse:
    """
    Book a slot as a patient.

    The booking is stored as pending until staff confirm it. If the
    confirmation email cannot be sent the booking still succeeds and the
    response carries a warning.
    """
    _get_bookable_owner(db, owner_id)
    first, last = PatientSlotSelector.booking_window()
    if not first <= request.appointment_date <= last:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This date is outside the booking window"
        )

    # Services are checked up front; the patient is only flushed and is
    # committed together with the appointment
    services = AppointmentService.validate_services(request.services)
    patient = PatientService.find_or_create_patient(
        db,
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        phone=request.phone,
        birth_date=request.birth_date,
        commit=False,
    )

    store = AvailabilityStore(db, owner_id)
    result = AppointmentService.book_appointment(
        db,
        store,
        owner_id=owner_id,
        patient_id=patient.id,
        appointment_date=request.appointment_date,
        appointment_time=request.appointment_time,
        services=services,
        notes=request.notes,
    )
    return BookingResponse(
        appointment=appointment_to_response(result.appointment),
        warnings=result.warnings,
    )
