"""
User model for pharmacy staff.

Staff users log in to the admin API and own availability data: every recurring
rule, date override, blocked date and appointment is scoped to one staff user.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, String, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class User(Base):
    """Staff user (admin or staff role) who manages availability and appointments."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    # Authentication
    email: Mapped[str] = mapped_column(String(255))
    password_hash: Mapped[str] = mapped_column(String(255))

    full_name: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20), default="staff")  # 'admin' or 'staff'
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    # Relationships
    recurring_availability = relationship(
        "RecurringAvailability", back_populates="owner", cascade="all, delete-orphan"
    )
    date_overrides = relationship(
        "SpecificDateAvailability", back_populates="owner", cascade="all, delete-orphan"
    )
    blocked_dates = relationship("BlockedDate", back_populates="owner", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="owner")

    __table_args__ = (
        UniqueConstraint('email', name='uq_users_email'),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
