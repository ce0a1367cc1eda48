"""
Blocked dates: whole days closed for an activity (training, inventory, holiday).

A blocked date forces every slot of its date closed, whatever the weekly
schedule or date overrides say. Template operations never create or remove
blocked dates.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, ForeignKey, String, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class BlockedDate(Base):
    """A date on which a staff user takes no appointments."""

    __tablename__ = "blocked_dates"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"))

    blocked_date: Mapped[date] = mapped_column(Date)

    activity: Mapped[str] = mapped_column(String(255))
    """Reason shown on the staff grid (e.g. 'Formation')."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    owner = relationship("User", back_populates="blocked_dates")

    __table_args__ = (
        UniqueConstraint('owner_id', 'blocked_date', name='uq_blocked_dates_owner_date'),
    )
