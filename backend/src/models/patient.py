"""
Patient model representing people who book vaccination appointments.

Patients are created by staff from the admin API, imported from a spreadsheet,
or created on the fly by a public booking. They are not scoped to a staff user:
the patient list is shared by the whole pharmacy.
"""

from sqlalchemy import String, Text, TIMESTAMP, Date, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, date
from typing import Optional

from core.database import Base


class Patient(Base):
    """
    Patient entity representing an individual who books vaccinations.

    Inactive patients are kept for history (their appointments still reference
    them) but are hidden from the default patient list.
    """

    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the patient."""

    first_name: Mapped[str] = mapped_column(String(255))
    """Given name of the patient."""

    last_name: Mapped[str] = mapped_column(String(255))
    """Family name of the patient."""

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Email address, used for booking confirmations. Also the matching key for spreadsheet imports."""

    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    """Contact phone number."""

    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    """Optional date of birth."""

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Optional staff notes about the patient."""

    status: Mapped[str] = mapped_column(String(20), default="active")
    """Patient status. Valid values: 'active', 'inactive'."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the patient was first created."""

    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the patient was last updated."""

    # Relationships
    appointments = relationship("Appointment", back_populates="patient")
    """Relationship to all Appointment entities booked for this patient."""

    __table_args__ = (
        Index('idx_patients_email', 'email'),
        Index('idx_patients_name', 'last_name', 'first_name'),
        Index('idx_patients_status', 'status'),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
