# Package initialization
# Import all models to ensure relationships are properly established
from .user import User
from .patient import Patient
from .appointment import Appointment
from .recurring_availability import RecurringAvailability
from .specific_date_availability import SpecificDateAvailability
from .blocked_date import BlockedDate

__all__ = [
    "User",
    "Patient",
    "Appointment",
    "RecurringAvailability",
    "SpecificDateAvailability",
    "BlockedDate",
]
