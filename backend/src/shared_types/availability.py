"""
Shared types for availability-related functionality.

This module contains shared data classes and types used across availability services
to ensure type safety and consistency. None of these are persisted: they are
derived from recurring rules, date overrides, blocked dates and appointments.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple


class SlotState(str, Enum):
    """Display state of one slot. Reserved is layered on top of open/closed."""

    OPEN = "open"
    CLOSED = "closed"
    RESERVED = "reserved"


@dataclass(frozen=True)
class SlotView:
    """
    One catalog slot of one day after reconciliation.

    is_open is the base state (weekly schedule, overrides, blocked date);
    is_reserved says a live appointment holds the slot.
    """
    time: str  # Format: "HH:MM"
    is_open: bool
    is_reserved: bool = False

    @property
    def state(self) -> SlotState:
        if self.is_reserved:
            return SlotState.RESERVED
        return SlotState.OPEN if self.is_open else SlotState.CLOSED

    @property
    def is_bookable(self) -> bool:
        return self.is_open and not self.is_reserved

    def to_dict(self) -> dict[str, str | bool]:
        """Convert to dictionary format."""
        return {
            "time": self.time,
            "is_open": self.is_open,
            "is_reserved": self.is_reserved,
            "state": self.state.value,
        }


@dataclass(frozen=True)
class DaySlotView:
    """
    Reconciled view of one date: one SlotView per catalog time, in catalog order.

    Both the staff grid and the patient selector read days through this type.
    """
    date: date
    slots: Tuple[SlotView, ...]
    is_blocked: bool = False
    blocked_reason: Optional[str] = None

    def slot(self, time_str: str) -> Optional[SlotView]:
        for slot in self.slots:
            if slot.time == time_str:
                return slot
        return None

    @property
    def open_count(self) -> int:
        return sum(1 for slot in self.slots if slot.is_open)

    @property
    def reserved_open_count(self) -> int:
        return sum(1 for slot in self.slots if slot.is_open and slot.is_reserved)

    @property
    def bookable_times(self) -> List[str]:
        return [slot.time for slot in self.slots if slot.is_bookable]

    def pattern(self) -> Dict[str, bool]:
        """Open/closed base state per slot time."""
        return {slot.time: slot.is_open for slot in self.slots}

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary format."""
        return {
            "date": self.date.isoformat(),
            "is_blocked": self.is_blocked,
            "blocked_reason": self.blocked_reason,
            "slots": [slot.to_dict() for slot in self.slots],
        }


@dataclass
class AvailabilityDraft:
    """
    Editable in-memory copy of a window of days: date -> {slot time -> is_open}.

    Seeded from reconciled views, mutated by the template operations and
    persisted by the synchronizer. Only dates present in the draft are saved.
    """
    days: Dict[date, Dict[str, bool]] = field(default_factory=dict)

    @classmethod
    def from_views(cls, views: Iterable[DaySlotView]) -> "AvailabilityDraft":
        return cls(days={view.date: view.pattern() for view in views})

    def dates(self) -> List[date]:
        return sorted(self.days)

    def pattern(self, day: date) -> Dict[str, bool]:
        """Pattern of a day; raises KeyError when the day is not loaded."""
        return self.days[day]

    def set_pattern(self, day: date, pattern: Dict[str, bool]) -> None:
        self.days[day] = dict(pattern)

    def copy(self) -> "AvailabilityDraft":
        return AvailabilityDraft(days={d: dict(p) for d, p in self.days.items()})
