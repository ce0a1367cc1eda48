"""
Recurring availability model for the default weekly schedule.

Each record is one interval of one weekday in a staff user's default week
(e.g. Monday 09:00-12:00 open). Date overrides take precedence over these
rows for any slot they define.
"""

from datetime import time, datetime
from typing import Optional
from sqlalchemy import Boolean, Time, TIMESTAMP, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class RecurringAvailability(Base):
    """
    Model for storing a staff user's default availability by day of week.

    Multiple records per day are allowed (morning and afternoon sessions), but
    they must not overlap; the weekly schedule service rejects overlapping
    intervals before anything is written.

    A slot is covered by a record when start_time <= slot < end_time. A record
    whose start_time equals its end_time covers exactly that one slot.
    """

    __tablename__ = "recurring_availability"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the availability record."""

    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    """Reference to the staff user."""

    day_of_week: Mapped[int] = mapped_column()
    """Day of the week (0=Monday, 1=Tuesday, ..., 6=Sunday)."""

    start_time: Mapped[time] = mapped_column(Time)
    """Start time of the interval."""

    end_time: Mapped[time] = mapped_column(Time)
    """End time of the interval (exclusive unless equal to start_time)."""

    is_available: Mapped[bool] = mapped_column(Boolean, default=True)
    """Whether slots inside the interval are open."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    owner = relationship("User", back_populates="recurring_availability")

    __table_args__ = (
        Index('idx_recurring_availability_owner_day', 'owner_id', 'day_of_week'),
    )

    @property
    def day_name(self) -> str:
        """Get the day name for display."""
        days = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']
        return days[self.day_of_week]
