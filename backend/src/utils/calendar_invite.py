"""
iCalendar invite generation for appointment confirmation emails.

Produces a minimal VCALENDAR with one VEVENT. Times are in UTC, TEXT values
are escaped and long lines folded at 75 octets, joined with CRLF (RFC 5545).
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.config import PHARMACY_NAME
from core.constants import DEFAULT_APPOINTMENT_DURATION_MINUTES


def format_ics_datetime(dt: datetime) -> str:
    """
    Format an aware datetime as an iCalendar UTC timestamp (YYYYMMDDTHHMMSSZ).

    Raises:
        ValueError: If the datetime is naive
    """
    if dt.tzinfo is None:
        raise ValueError("Calendar invite datetimes must be timezone-aware")
    return dt.astimezone(timezone.utc).strftime('%Y%m%dT%H%M%SZ')


def _single_line(value: str) -> str:
    return _escape_text(value.replace('\r', '').replace('\n', ' '))


def _escape_text(value: str) -> str:
    """Escape a TEXT property value (backslash, semicolon, comma, newline)."""
    value = value.replace('\\', '\\\\').replace(';', '\\;').replace(',', '\\,')
    return value.replace('\r\n', '\n').replace('\r', '\n').replace('\n', '\\n')


def _fold_line(line: str, limit: int = 75) -> str:
    """Fold a content line at 75 octets; continuation lines start with a space."""
    parts = []
    current = ""
    size = 0
    for char in line:
        width = len(char.encode('utf-8'))
        if size + width > limit:
            parts.append(current)
            # The leading space counts toward the next line's octets
            current, size = " ", 1
        current += char
        size += width
    parts.append(current)
    return "\r\n".join(parts)


def build_calendar_invite(
    start: datetime,
    end: Optional[datetime] = None,
    summary: Optional[str] = None,
    description: Optional[str] = None,
    location: Optional[str] = None,
    uid_domain: str = "pharmacy.local",
    now: Optional[datetime] = None,
) -> str:
    """
    Build the text of an .ics invite for one appointment.

    Args:
        start: Aware start datetime
        end: Aware end datetime; defaults to start plus one appointment duration
        summary: Event title; defaults to an appointment at the pharmacy
        description: Optional multi-line description (newlines are escaped)
        location: Optional location; defaults to the pharmacy name
        uid_domain: Domain part of the event UID
        now: DTSTAMP value; defaults to the current UTC time

    Returns:
        The invite text with CRLF line endings
    """
    if end is None:
        end = start + timedelta(minutes=DEFAULT_APPOINTMENT_DURATION_MINUTES)
    stamp = now or datetime.now(timezone.utc)
    title = _single_line(summary or f"Rendez-vous {PHARMACY_NAME}")
    place = _single_line(location or PHARMACY_NAME)

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:-//{_single_line(PHARMACY_NAME)}//Appointment//FR",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{uuid.uuid4()}@{uid_domain}",
        f"DTSTAMP:{format_ics_datetime(stamp)}",
        f"DTSTART:{format_ics_datetime(start)}",
        f"DTEND:{format_ics_datetime(end)}",
        f"SUMMARY:{title}",
    ]
    if description:
        lines.append("DESCRIPTION:" + _escape_text(description))
    if place:
        lines.append(f"LOCATION:{place}")
    lines.extend(["END:VEVENT", "END:VCALENDAR"])
    return "\r\n".join(_fold_line(line) for line in lines)
