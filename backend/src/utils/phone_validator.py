"""
Phone number validation utilities.

Provides centralized phone number cleaning and validation logic
for consistent validation across the application. Accepted numbers are
Belgian mobile and landline numbers, French mobiles and Italian mobiles,
in national or international (+CC) form.
"""

import re
from typing import Optional

_ACCEPTED_PATTERNS = (
    re.compile(r'^\+324\d{8}$'),          # Belgian mobile, international
    re.compile(r'^04\d{8}$'),             # Belgian mobile, national
    re.compile(r'^\+32[1-35-9]\d{7}$'),   # Belgian landline, international
    re.compile(r'^0[1-35-9]\d{7}$'),      # Belgian landline, national
    re.compile(r'^\+33[67]\d{8}$'),       # French mobile, international
    re.compile(r'^0[67]\d{8}$'),          # French mobile, national
    re.compile(r'^\+393\d{8,9}$'),        # Italian mobile, international
    re.compile(r'^3\d{8,9}$'),            # Italian mobile, national
)


def clean_phone_number(phone: str) -> str:
    """
    Clean phone number by removing common separators.

    Args:
        phone: Phone number string (may contain spaces, dashes, dots, parentheses)

    Returns:
        Cleaned phone number (digits, with a leading + kept)
    """
    return re.sub(r'[-\s().]', '', phone)


def validate_phone(phone: str) -> str:
    """
    Validate and clean a phone number.

    Args:
        phone: Phone number string to validate

    Returns:
        Cleaned phone number

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone or not phone.strip():
        raise ValueError('Phone number is required')

    cleaned = clean_phone_number(phone)

    if not re.fullmatch(r'\+?\d+', cleaned):
        raise ValueError('Phone number must contain digits only')

    if not any(pattern.match(cleaned) for pattern in _ACCEPTED_PATTERNS):
        raise ValueError(
            'Invalid phone number format. Accepted: Belgian mobile (04XX XX XX XX), '
            'Belgian landline, French mobile (06/07), Italian mobile (3XX)'
        )

    return cleaned


def validate_phone_optional(phone: Optional[str]) -> Optional[str]:
    """
    Validate and clean a phone number for optional fields.

    Returns:
        Cleaned phone number or None if phone is None/empty

    Raises:
        ValueError: If phone number is invalid (but not empty)
    """
    if phone is None or not phone.strip():
        return None
    return validate_phone(phone)
