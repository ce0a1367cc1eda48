# pyright: reportMissingTypeStubs=false
"""
Appointment API endpoints for staff.

Staff list their appointments, book on behalf of a patient and move
appointments through their lifecycle.
"""

import logging
from datetime import date as date_type
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.orm import Session

from auth.dependencies import UserContext, require_staff
from core.constants import APPOINTMENT_STATUS_CONFIRMED
from core.database import get_db
from models import Appointment
from services.appointment_service import AppointmentService
from services.availability_store import AvailabilityStore
from services.patient_service import PatientService
from utils.datetime_utils import format_time
from utils.patient_validators import (
    validate_birth_date, validate_email_optional, validate_patient_name_optional
)
from utils.phone_validator import validate_phone_optional
from api.responses import AppointmentListResponse, AppointmentResponse, BookingResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def appointment_to_response(appointment: Appointment) -> AppointmentResponse:
    """Convert an appointment (with its patient loaded) to the API model."""
    patient = appointment.patient
    return AppointmentResponse(
        id=appointment.id,
        owner_id=appointment.owner_id,
        patient_id=appointment.patient_id,
        patient_name=patient.full_name if patient else "",
        appointment_date=appointment.appointment_date,
        appointment_time=format_time(appointment.appointment_time),
        status=appointment.status,
        services=list(appointment.services or []),
        notes=appointment.notes,
        created_at=appointment.created_at,
    )


class StaffAppointmentCreateRequest(BaseModel):
    """
    Booking made by staff, for an existing patient or a new one.

    Either patient_id or both first_name and last_name must be given.
    """
    patient_id: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[date_type] = None
    appointment_date: date_type
    appointment_time: str  # Format: "HH:MM"
    services: List[str]
    notes: Optional[str] = None
    send_confirmation: bool = True

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_names(cls, v: Optional[str]) -> Optional[str]:
        return validate_patient_name_optional(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return validate_email_optional(v)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone_optional(v)

    @field_validator('birth_date', mode='before')
    @classmethod
    def validate_birth(cls, v):
        return validate_birth_date(v)

    @model_validator(mode='after')
    def validate_patient_reference(self) -> 'StaffAppointmentCreateRequest':
        if self.patient_id is None and not (self.first_name and self.last_name):
            raise ValueError('Provide patient_id or the patient first and last name')
        return self


@router.get("", summary="List appointments")
async def list_appointments(
    start: Optional[date_type] = Query(None),
    end: Optional[date_type] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> AppointmentListResponse:
    appointments = AppointmentService.list_appointments(
        db, current_user.user_id, start, end, status_filter
    )
    return AppointmentListResponse(
        appointments=[appointment_to_response(a) for a in appointments]
    )


@router.post("", summary="Book an appointment for a patient", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    request: StaffAppointmentCreateRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> BookingResponse:
    """
    Book a slot on the current user's calendar.

    Staff bookings are confirmed immediately. When no patient_id is given the
    patient is matched by email (or name and phone) and created if unknown;
    that patient change is discarded if the booking is rejected.
    """
    if request.patient_id is not None:
        patient = PatientService.get_patient(db, request.patient_id)
    else:
        patient = PatientService.find_or_create_patient(
            db,
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            phone=request.phone,
            birth_date=request.birth_date,
            commit=False,
        )

    store = AvailabilityStore(db, current_user.user_id)
    result = AppointmentService.book_appointment(
        db,
        store,
        owner_id=current_user.user_id,
        patient_id=patient.id,
        appointment_date=request.appointment_date,
        appointment_time=request.appointment_time,
        services=request.services,
        notes=request.notes,
        initial_status=APPOINTMENT_STATUS_CONFIRMED,
        send_confirmation=request.send_confirmation,
    )
    return BookingResponse(
        appointment=appointment_to_response(result.appointment),
        warnings=result.warnings,
    )


@router.get("/{appointment_id}", summary="Get an appointment")
async def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> AppointmentResponse:
    appointment = AppointmentService.get_appointment(db, current_user.user_id, appointment_id)
    return appointment_to_response(appointment)


@router.post("/{appointment_id}/confirm", summary="Confirm a pending appointment")
async def confirm_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> AppointmentResponse:
    appointment = AppointmentService.confirm_appointment(db, current_user.user_id, appointment_id)
    return appointment_to_response(appointment)


@router.post("/{appointment_id}/complete", summary="Mark an appointment as completed")
async def complete_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> AppointmentResponse:
    appointment = AppointmentService.complete_appointment(db, current_user.user_id, appointment_id)
    return appointment_to_response(appointment)


@router.post("/{appointment_id}/cancel", summary="Cancel an appointment")
async def cancel_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> AppointmentResponse:
    """Cancel an appointment; its slot is bookable again immediately."""
    appointment = AppointmentService.cancel_appointment(db, current_user.user_id, appointment_id)
    return appointment_to_response(appointment)


@router.delete("/{appointment_id}", summary="Delete an appointment",
               status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> Response:
    try:
        AppointmentService.delete_appointment(db, current_user.user_id, appointment_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to delete appointment {appointment_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete appointment"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
