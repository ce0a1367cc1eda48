"""
Shared type definitions for the vaccination booking backend.

This module contains dataclasses and types that are used across multiple services.
"""

from shared_types.availability import AvailabilityDraft, DaySlotView, SlotState, SlotView

__all__ = ["AvailabilityDraft", "DaySlotView", "SlotState", "SlotView"]
