"""
Appointment service for shared appointment business logic.

This module contains all appointment-related business logic that is shared
between the public booking API and the staff API: booking a slot, the
appointment lifecycle (confirm, complete, cancel, delete) and listings.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from core.constants import (
    APPOINTMENT_STATUS_CANCELLED,
    APPOINTMENT_STATUS_COMPLETED,
    APPOINTMENT_STATUS_CONFIRMED,
    APPOINTMENT_STATUS_PENDING,
    APPOINTMENT_STATUSES,
    MAX_NOTES_LENGTH,
    MAX_SERVICES_PER_APPOINTMENT,
    VACCINE_TYPES,
)
from models import Appointment, Patient
from services.availability_store import AvailabilityStore
from services.notification_service import NotificationService
from utils.datetime_utils import format_time, local_now, local_today, parse_time_string
from utils.slot_catalog import normalize_time

logger = logging.getLogger(__name__)

CONFIRMATION_EMAIL_WARNING = "The booking is confirmed but the confirmation email could not be sent."


class SlotTakenError(Exception):
    """Raised when a slot is already held by another live appointment."""

    def __init__(self, appointment_date: date, appointment_time: str):
        self.appointment_date = appointment_date
        self.appointment_time = appointment_time
        super().__init__(
            f"The slot {appointment_date.isoformat()} {appointment_time} was just taken"
        )


@dataclass
class BookingResult:
    """A committed appointment plus any non-fatal warnings (e.g. email failure)."""
    appointment: Appointment
    warnings: List[str] = field(default_factory=list)


class AppointmentService:
    """
    Service class for appointment operations.

    Contains business logic for appointment management that is shared
    across different API endpoints.
    """

    @staticmethod
    def validate_services(services: Sequence[str]) -> List[str]:
        """
        Validate the vaccines requested for one visit.

        Returns:
            The services without duplicates, in request order

        Raises:
            ValueError: If the list is empty, too long or has an unknown vaccine
        """
        cleaned: List[str] = []
        for service in services:
            value = (service or "").strip().lower()
            if value not in VACCINE_TYPES:
                raise ValueError(f"Unknown vaccine type: {service}")
            if value not in cleaned:
                cleaned.append(value)
        if not cleaned:
            raise ValueError("At least one vaccine must be selected")
        if len(cleaned) > MAX_SERVICES_PER_APPOINTMENT:
            raise ValueError(f"At most {MAX_SERVICES_PER_APPOINTMENT} vaccines per appointment")
        return cleaned

    @staticmethod
    def book_appointment(
        db: Session,
        store: AvailabilityStore,
        owner_id: int,
        patient_id: int,
        appointment_date: date,
        appointment_time: str,
        services: Sequence[str],
        notes: Optional[str] = None,
        initial_status: str = APPOINTMENT_STATUS_PENDING,
        send_confirmation: bool = True,
    ) -> BookingResult:
        """
        Book one slot for a patient.

        The slot is checked against the store first, then the insert relies on
        the partial unique index as the final guard: if another booking won
        the race, SlotTakenError is raised and nothing is written.
        Any rejection rolls back the session, including patient rows the
        caller flushed without committing.

        Args:
            db: Database session
            store: Availability store of the owner
            owner_id: Staff user whose calendar is booked
            patient_id: Patient being booked
            appointment_date: Local date
            appointment_time: Catalog slot ("HH:MM")
            services: One or two vaccine types
            notes: Optional notes
            initial_status: 'pending' for public bookings, 'confirmed' for staff bookings
            send_confirmation: Send the confirmation email after commit

        Returns:
            BookingResult with the committed appointment

        Raises:
            ValueError: On invalid services, time or status
            HTTPException: 404 if the patient does not exist, 400 if the slot is not open
            SlotTakenError: If a live appointment already holds the slot
            AvailabilityLoadError: If availability cannot be loaded
        """
        try:
            appointment = AppointmentService._insert_appointment(
                db, store, owner_id, patient_id, appointment_date, appointment_time,
                services, notes, initial_status,
            )
        except Exception:
            # Drop patient rows the caller flushed for this booking
            db.rollback()
            raise
        slot = format_time(appointment.appointment_time)
        db.refresh(appointment)
        store.invalidate()
        logger.info(
            f"Booked appointment {appointment.id} for patient {patient_id} "
            f"on {appointment_date.isoformat()} {slot} (owner {owner_id})"
        )

        result = BookingResult(appointment=appointment)
        if send_confirmation and not NotificationService.send_appointment_confirmation(appointment):
            result.warnings.append(CONFIRMATION_EMAIL_WARNING)
        return result

    @staticmethod
    def _insert_appointment(
        db: Session,
        store: AvailabilityStore,
        owner_id: int,
        patient_id: int,
        appointment_date: date,
        appointment_time: str,
        services: Sequence[str],
        notes: Optional[str],
        initial_status: str,
    ) -> Appointment:
        cleaned_services = AppointmentService.validate_services(services)
        slot = normalize_time(appointment_time)
        if initial_status not in (APPOINTMENT_STATUS_PENDING, APPOINTMENT_STATUS_CONFIRMED):
            raise ValueError(f"Invalid initial status: {initial_status}")
        if notes and len(notes.strip()) > MAX_NOTES_LENGTH:
            raise ValueError(f"Notes are limited to {MAX_NOTES_LENGTH} characters")

        if appointment_date < local_today():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot book a date in the past"
            )

        patient = db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found"
            )

        window = store.window
        if window is None or not window[0] <= appointment_date <= window[1]:
            store.refresh(appointment_date, appointment_date)

        if not store.is_bookable(appointment_date, slot):
            view_slot = store.day_view(appointment_date).slot(slot)
            if view_slot is not None and view_slot.is_reserved:
                raise SlotTakenError(appointment_date, slot)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This slot is not available for booking"
            )

        appointment = Appointment(
            owner_id=owner_id,
            patient_id=patient_id,
            appointment_date=appointment_date,
            appointment_time=parse_time_string(slot),
            status=initial_status,
            services=cleaned_services,
            notes=(notes or "").strip() or None,
        )
        db.add(appointment)
        try:
            db.commit()
        except IntegrityError as e:
            store.invalidate()
            logger.warning(f"Appointment booking conflict on {appointment_date} {slot}: {e}")
            raise SlotTakenError(appointment_date, slot) from e
        return appointment

    @staticmethod
    def get_appointment(db: Session, owner_id: int, appointment_id: int) -> Appointment:
        """
        Raises:
            HTTPException: 404 if the appointment does not exist for this owner
        """
        appointment = db.query(Appointment).options(
            joinedload(Appointment.patient)
        ).filter(
            Appointment.id == appointment_id,
            Appointment.owner_id == owner_id,
        ).first()
        if not appointment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Appointment not found"
            )
        return appointment

    @staticmethod
    def _transition(
        db: Session,
        owner_id: int,
        appointment_id: int,
        allowed_from: Sequence[str],
        new_status: str,
    ) -> Appointment:
        appointment = AppointmentService.get_appointment(db, owner_id, appointment_id)
        if appointment.status not in allowed_from:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot change appointment from {appointment.status} to {new_status}"
            )
        appointment.status = new_status
        if new_status == APPOINTMENT_STATUS_CANCELLED:
            appointment.cancelled_at = local_now()
        db.commit()
        db.refresh(appointment)
        logger.info(f"Appointment {appointment_id} is now {new_status}")
        return appointment

    @staticmethod
    def confirm_appointment(db: Session, owner_id: int, appointment_id: int) -> Appointment:
        return AppointmentService._transition(
            db, owner_id, appointment_id, [APPOINTMENT_STATUS_PENDING], APPOINTMENT_STATUS_CONFIRMED
        )

    @staticmethod
    def complete_appointment(db: Session, owner_id: int, appointment_id: int) -> Appointment:
        return AppointmentService._transition(
            db, owner_id, appointment_id, [APPOINTMENT_STATUS_CONFIRMED], APPOINTMENT_STATUS_COMPLETED
        )

    @staticmethod
    def cancel_appointment(db: Session, owner_id: int, appointment_id: int) -> Appointment:
        """
        Cancel a pending or confirmed appointment.

        The slot becomes bookable again as soon as this commits; availability
        rows are not modified.
        """
        return AppointmentService._transition(
            db,
            owner_id,
            appointment_id,
            [APPOINTMENT_STATUS_PENDING, APPOINTMENT_STATUS_CONFIRMED],
            APPOINTMENT_STATUS_CANCELLED,
        )

    @staticmethod
    def delete_appointment(db: Session, owner_id: int, appointment_id: int) -> None:
        appointment = AppointmentService.get_appointment(db, owner_id, appointment_id)
        db.delete(appointment)
        db.commit()
        logger.info(f"Deleted appointment {appointment_id}")

    @staticmethod
    def list_appointments(
        db: Session,
        owner_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status_filter: Optional[str] = None,
    ) -> List[Appointment]:
        """
        List an owner's appointments ordered by date and time.

        Raises:
            ValueError: On an unknown status filter
        """
        if status_filter is not None and status_filter not in APPOINTMENT_STATUSES:
            raise ValueError(f"Invalid appointment status: {status_filter}")

        query = db.query(Appointment).options(
            joinedload(Appointment.patient)
        ).filter(Appointment.owner_id == owner_id)
        if start is not None:
            query = query.filter(Appointment.appointment_date >= start)
        if end is not None:
            query = query.filter(Appointment.appointment_date <= end)
        if status_filter is not None:
            query = query.filter(Appointment.status == status_filter)
        return query.order_by(
            Appointment.appointment_date, Appointment.appointment_time, Appointment.id
        ).all()
