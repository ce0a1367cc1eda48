"""
Date-specific availability overrides.

The staff grid saves every slot of every edited day as one row here, with an
explicit open/closed value. Rows use start_time == end_time == slot time so the
unique tuple (owner_id, specific_date, start_time, end_time) identifies a slot
and the synchronizer can upsert on it.
"""

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Index, Time, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class SpecificDateAvailability(Base):
    """Override of the weekly schedule for one slot (or interval) of one date."""

    __tablename__ = "specific_date_availability"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    """Reference to the staff user."""

    specific_date: Mapped[date] = mapped_column(Date)

    start_time: Mapped[time] = mapped_column(Time)

    end_time: Mapped[time] = mapped_column(Time)

    is_available: Mapped[bool] = mapped_column(Boolean, default=True)
    """Replaces the weekly schedule's value for the covered slots."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    owner = relationship("User", back_populates="date_overrides")

    __table_args__ = (
        UniqueConstraint(
            'owner_id', 'specific_date', 'start_time', 'end_time',
            name='uq_specific_date_availability_slot',
        ),
        Index('idx_specific_date_availability_owner_date', 'owner_id', 'specific_date'),
    )
