"""
Patient service for shared patient business logic.

This module contains all patient-related business logic that is shared
between the staff API and the public booking API, including the spreadsheet
(CSV) export and import of the patient list.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from core.constants import MAX_NOTES_LENGTH, PATIENT_STATUSES
from models import Patient
from utils.datetime_utils import parse_date_string
from utils.phone_validator import validate_phone_optional

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["first_name", "last_name", "email", "phone", "birth_date", "notes", "status"]
UPDATABLE_FIELDS = {"first_name", "last_name", "email", "phone", "birth_date", "notes", "status"}


@dataclass
class PatientImportReport:
    """Outcome of a CSV import. Row numbers count the header as row 1."""
    created: int = 0
    updated: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"created": self.created, "updated": self.updated, "errors": self.errors}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class PatientService:
    """
    Service class for patient operations.

    Contains business logic for patient management that is shared
    across different API endpoints.
    """

    @staticmethod
    def _normalize_fields(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and normalize patient fields.

        Raises:
            ValueError: On an invalid phone number, status or empty name
        """
        normalized = dict(data)
        for name_field in ("first_name", "last_name"):
            if name_field in normalized:
                value = _clean(normalized[name_field])
                if not value:
                    raise ValueError(f"{name_field.replace('_', ' ').capitalize()} is required")
                normalized[name_field] = value
        if "email" in normalized:
            email = _clean(normalized["email"])
            normalized["email"] = email.lower() if email else None
        if "phone" in normalized:
            normalized["phone"] = validate_phone_optional(normalized["phone"])
        if "notes" in normalized:
            normalized["notes"] = _clean(normalized["notes"])
            if normalized["notes"] and len(normalized["notes"]) > MAX_NOTES_LENGTH:
                raise ValueError(f"Notes are limited to {MAX_NOTES_LENGTH} characters")
        if "status" in normalized:
            if normalized["status"] not in PATIENT_STATUSES:
                raise ValueError(f"Invalid patient status: {normalized['status']}")
        return normalized

    @staticmethod
    def create_patient(
        db: Session,
        first_name: str,
        last_name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        birth_date: Optional[date] = None,
        notes: Optional[str] = None,
        commit: bool = True,
    ) -> Patient:
        """
        Create a new patient record.

        With commit=False the row is only flushed, so it is written or
        discarded together with the caller's transaction.

        Raises:
            ValueError: If a field is invalid
        """
        fields = PatientService._normalize_fields({
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "phone": phone,
            "notes": notes,
        })
        patient = Patient(birth_date=birth_date, status="active", **fields)
        db.add(patient)
        if commit:
            db.commit()
            db.refresh(patient)
        else:
            db.flush()
        logger.info(f"Created patient {patient.id}")
        return patient

    @staticmethod
    def get_patient(db: Session, patient_id: int) -> Patient:
        """
        Raises:
            HTTPException: 404 if the patient does not exist
        """
        patient = db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found"
            )
        return patient

    @staticmethod
    def update_patient(db: Session, patient_id: int, updates: Dict[str, Any]) -> Patient:
        """
        Apply a partial update. Only keys present in updates are changed.

        Raises:
            HTTPException: 404 if the patient does not exist
            ValueError: If a field is invalid or unknown
        """
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown patient field(s): {', '.join(sorted(unknown))}")

        patient = PatientService.get_patient(db, patient_id)
        for key, value in PatientService._normalize_fields(updates).items():
            setattr(patient, key, value)
        db.commit()
        db.refresh(patient)
        return patient

    @staticmethod
    def deactivate_patient(db: Session, patient_id: int) -> Patient:
        """Mark a patient inactive; history and appointments are kept."""
        patient = PatientService.get_patient(db, patient_id)
        patient.status = "inactive"
        db.commit()
        db.refresh(patient)
        logger.info(f"Deactivated patient {patient_id}")
        return patient

    @staticmethod
    def search_patients(
        db: Session,
        search: Optional[str] = None,
        include_inactive: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Patient]:
        """
        List patients ordered by last then first name.

        Args:
            search: Case-insensitive match on first name, last name, email or phone
            include_inactive: Include inactive patients
        """
        query = db.query(Patient)
        if not include_inactive:
            query = query.filter(Patient.status == "active")
        term = _clean(search)
        if term:
            pattern = f"%{term.lower()}%"
            query = query.filter(or_(
                func.lower(Patient.first_name).like(pattern),
                func.lower(Patient.last_name).like(pattern),
                func.lower(Patient.email).like(pattern),
                Patient.phone.like(f"%{term}%"),
                func.lower(Patient.first_name + " " + Patient.last_name).like(pattern),
            ))
        query = query.order_by(Patient.last_name, Patient.first_name, Patient.id)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def find_or_create_patient(
        db: Session,
        first_name: str,
        last_name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        birth_date: Optional[date] = None,
        commit: bool = True,
    ) -> Patient:
        """
        Reuse an existing patient for a public booking, or create one.

        Matching is on email when one is given, otherwise on first name,
        last name and phone. A matched inactive patient is reactivated.
        With commit=False changes are flushed but left for the caller to
        commit, so a booking that is then rejected leaves patients untouched.
        """
        fields = PatientService._normalize_fields({
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "phone": phone,
        })

        query = db.query(Patient)
        if fields["email"]:
            query = query.filter(func.lower(Patient.email) == fields["email"])
        else:
            query = query.filter(
                func.lower(Patient.first_name) == fields["first_name"].lower(),
                func.lower(Patient.last_name) == fields["last_name"].lower(),
                Patient.phone == fields["phone"],
            )
        patient = query.order_by(Patient.id).first()

        if patient is None:
            return PatientService.create_patient(db, birth_date=birth_date, commit=commit, **fields)

        changed = False
        if patient.status != "active":
            patient.status = "active"
            changed = True
        if fields["phone"] and not patient.phone:
            patient.phone = fields["phone"]
            changed = True
        if birth_date and not patient.birth_date:
            patient.birth_date = birth_date
            changed = True
        if changed and commit:
            db.commit()
            db.refresh(patient)
        elif changed:
            db.flush()
        return patient

    @staticmethod
    def export_csv(db: Session, include_inactive: bool = True) -> str:
        """Export the patient list as CSV text with a header row."""
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for patient in PatientService.search_patients(db, include_inactive=include_inactive):
            writer.writerow({
                "first_name": patient.first_name,
                "last_name": patient.last_name,
                "email": patient.email or "",
                "phone": patient.phone or "",
                "birth_date": patient.birth_date.isoformat() if patient.birth_date else "",
                "notes": patient.notes or "",
                "status": patient.status,
            })
        return output.getvalue()

    @staticmethod
    def import_csv(db: Session, content: str) -> PatientImportReport:
        """
        Import patients from CSV text.

        Rows with an email matching an existing patient update that patient;
        other rows create new patients. Invalid rows are skipped and reported,
        valid rows are committed.

        Raises:
            ValueError: If the header lacks first_name or last_name
        """
        reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
        headers = {h.strip() for h in (reader.fieldnames or [])}
        missing = {"first_name", "last_name"} - headers
        if missing:
            raise ValueError(f"CSV is missing required column(s): {', '.join(sorted(missing))}")

        report = PatientImportReport()
        for row_number, raw in enumerate(reader, start=2):
            row = {(k or "").strip(): v for k, v in raw.items()}
            try:
                data: Dict[str, Any] = {
                    key: row.get(key) for key in ("first_name", "last_name", "email", "phone", "notes")
                    if key in row
                }
                birth_date = _clean(row.get("birth_date"))
                if birth_date:
                    data["birth_date"] = parse_date_string(birth_date)
                status_value = _clean(row.get("status"))
                if status_value:
                    data["status"] = status_value.lower()
                fields = PatientService._normalize_fields(data)

                existing = None
                if fields.get("email"):
                    existing = db.query(Patient).filter(
                        func.lower(Patient.email) == fields["email"]
                    ).order_by(Patient.id).first()

                if existing:
                    for key, value in fields.items():
                        setattr(existing, key, value)
                    report.updated += 1
                else:
                    fields.setdefault("status", "active")
                    db.add(Patient(**fields))
                    report.created += 1
                db.flush()
            except ValueError as e:
                report.errors.append({"row": row_number, "error": str(e)})

        db.commit()
        logger.info(
            f"Imported patients: {report.created} created, {report.updated} updated, "
            f"{len(report.errors)} error(s)"
        )
        return report
