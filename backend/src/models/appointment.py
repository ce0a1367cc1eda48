"""
Appointment model representing a booked vaccination slot.

An appointment occupies exactly one catalog slot (date + time) of one staff
user's calendar. While it is not cancelled it marks that slot reserved; the
partial unique index below is the storage-level guarantee that two live
appointments never share a slot, even when two bookings race.
"""

from datetime import date, datetime, time
from typing import List, Optional

from sqlalchemy import JSON, Date, ForeignKey, Index, String, Text, Time, TIMESTAMP, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class Appointment(Base):
    """
    Appointment entity linking a patient to one slot of a staff user's calendar.

    Lifecycle: pending -> confirmed -> completed, with cancellation allowed from
    pending or confirmed. Cancelling frees the slot immediately; availability
    rows are never touched by the appointment lifecycle.
    """

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the appointment."""

    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    """Staff user whose calendar this appointment occupies."""

    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"))
    """Reference to the patient who booked this appointment."""

    appointment_date: Mapped[date] = mapped_column(Date)
    """Local date of the appointment."""

    appointment_time: Mapped[time] = mapped_column(Time)
    """Local start time of the appointment; always a catalog slot."""

    status: Mapped[str] = mapped_column(String(20), default="pending")
    """Current status. Valid values: 'pending', 'confirmed', 'completed', 'cancelled'."""

    services: Mapped[List[str]] = mapped_column(JSON, default=list)
    """Vaccines requested for this visit (one or two of 'covid', 'grippe')."""

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Optional notes provided at booking time."""

    cancelled_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    """Timestamp when the appointment was cancelled (if applicable)."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    # Relationships
    owner = relationship("User", back_populates="appointments")
    patient = relationship("Patient", back_populates="appointments")

    __table_args__ = (
        Index('idx_appointments_owner_date', 'owner_id', 'appointment_date'),
        Index('idx_appointments_patient', 'patient_id'),
        Index('idx_appointments_status', 'status'),
        # One live appointment per slot; cancelled rows don't count
        Index(
            'uq_appointments_active_slot',
            'owner_id', 'appointment_date', 'appointment_time',
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )

    @property
    def is_active(self) -> bool:
        """Whether the appointment still holds its slot."""
        return self.status != "cancelled"
