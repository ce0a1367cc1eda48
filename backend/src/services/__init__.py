"""
Services package for shared business logic.

This package contains service classes that encapsulate business logic
shared across multiple API endpoints.
"""

from .patient_service import PatientService
from .appointment_service import AppointmentService
from .availability_service import AvailabilityService
from .availability_store import AvailabilityStore
from .availability_sync_service import AvailabilitySyncService
from .availability_template_service import AvailabilityTemplateService
from .patient_slot_selector import PatientSlotSelector
from .slot_reconciler import SlotReconciler

__all__ = [
    "PatientService",
    "AppointmentService",
    "AvailabilityService",
    "AvailabilityStore",
    "AvailabilitySyncService",
    "AvailabilityTemplateService",
    "PatientSlotSelector",
    "SlotReconciler",
]
