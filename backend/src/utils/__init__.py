"""
Utility modules for the vaccination booking application.

This package contains shared utility functions and helpers used across
the application, including datetime utilities, the slot catalog, holidays,
calendar invites and validation helpers.
"""

from utils.slot_catalog import catalog_times, is_catalog_time, normalize_time

__all__ = ['catalog_times', 'is_catalog_time', 'normalize_time']
