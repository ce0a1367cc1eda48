"""
Patient field validation utilities.

Provides centralized validation logic for patient fields
for consistent validation across the application. Used as Pydantic field
validators by the staff and public booking request models.
"""

import re
from datetime import date as date_type
from typing import Optional, Union

from core.constants import MAX_STRING_LENGTH, PATIENT_STATUSES
from utils.datetime_utils import local_today, parse_date_string

_EMAIL_PATTERN = re.compile(r'^[^@\s<>]+@[^@\s<>]+\.[^@\s<>]+$')


def validate_patient_name(v: str) -> str:
    """
    Validate a first or last name.

    - Trims whitespace
    - Ensures non-empty
    - Checks length (max 255)
    - Rejects angle brackets
    """
    v = v.strip()
    if not v:
        raise ValueError('Name cannot be empty')
    if len(v) > MAX_STRING_LENGTH:
        raise ValueError('Name is too long')
    if '<' in v or '>' in v:
        raise ValueError('Name contains invalid characters')
    return v


def validate_patient_name_optional(v: Optional[str]) -> Optional[str]:
    """Validate patient name field (optional version)."""
    if v is None:
        return None
    return validate_patient_name(v)


def validate_email_optional(v: Optional[str]) -> Optional[str]:
    """
    Validate and normalize an email address.

    Returns:
        Lower-cased address, or None for None/empty input
    """
    if v is None or not v.strip():
        return None
    v = v.strip().lower()
    if len(v) > MAX_STRING_LENGTH or not _EMAIL_PATTERN.match(v):
        raise ValueError('Invalid email address')
    return v


def validate_birth_date(v: Union[str, date_type, None]) -> Optional[date_type]:
    """
    Validate a date of birth (YYYY-MM-DD) and its range.

    - Accepts date object or string
    - Ensures not in future
    - Ensures not more than 150 years ago
    """
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    parsed = v if isinstance(v, date_type) else parse_date_string(v)
    today = local_today()
    if parsed > today:
        raise ValueError('Birth date cannot be in the future')
    if (today - parsed).days > 150 * 365:
        raise ValueError('Birth date is not plausible')
    return parsed


def validate_patient_status(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip().lower()
    if v not in PATIENT_STATUSES:
        raise ValueError(f"Status must be one of: {', '.join(PATIENT_STATUSES)}")
    return v
