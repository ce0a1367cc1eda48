# pyright: reportMissingTypeStubs=false
"""
Patient Management API endpoints.

Staff create, search, update and deactivate patients, and move the whole
patient list in and out of the pharmacy's spreadsheet as CSV.
"""

import logging
from datetime import date as date_type
from typing import Optional, Union

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from auth.dependencies import UserContext, require_staff
from core.database import get_db
from models import Patient
from services.patient_service import PatientService
from utils.patient_validators import (
    validate_birth_date,
    validate_email_optional,
    validate_patient_name,
    validate_patient_name_optional,
    validate_patient_status,
)
from utils.phone_validator import validate_phone_optional
from api.responses import PatientImportResponse, PatientListResponse, PatientResponse

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_IMPORT_BYTES = 5 * 1024 * 1024


def patient_to_response(patient: Patient) -> PatientResponse:
    return PatientResponse(
        id=patient.id,
        first_name=patient.first_name,
        last_name=patient.last_name,
        email=patient.email,
        phone=patient.phone,
        birth_date=patient.birth_date,
        notes=patient.notes,
        status=patient.status,
        created_at=patient.created_at,
    )


class PatientCreateRequest(BaseModel):
    """Request model for creating a patient."""
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[date_type] = None
    notes: Optional[str] = None

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_names(cls, v: str) -> str:
        return validate_patient_name(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return validate_email_optional(v)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        """Validate phone number if provided, allow None or empty string."""
        return validate_phone_optional(v)

    @field_validator('birth_date', mode='before')
    @classmethod
    def validate_birth(cls, v: Union[str, date_type, None]) -> Optional[date_type]:
        """Validate birth date format (YYYY-MM-DD) and reasonable range."""
        return validate_birth_date(v)


class PatientUpdateRequest(BaseModel):
    """Request model for a partial patient update; omitted fields are unchanged."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[date_type] = None
    notes: Optional[str] = None
    status: Optional[str] = None

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_names(cls, v: Optional[str]) -> Optional[str]:
        return validate_patient_name_optional(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return validate_email_optional(v)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone_optional(v)

    @field_validator('birth_date', mode='before')
    @classmethod
    def validate_birth(cls, v: Union[str, date_type, None]) -> Optional[date_type]:
        return validate_birth_date(v)

    @field_validator('status')
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        return validate_patient_status(v)


@router.get("", summary="List or search patients")
async def list_patients(
    search: Optional[str] = Query(None, max_length=200, description="Match on name, email or phone"),
    include_inactive: bool = Query(False),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> PatientListResponse:
    patients = PatientService.search_patients(db, search, include_inactive, limit, offset)
    return PatientListResponse(patients=[patient_to_response(p) for p in patients])


@router.post("", summary="Create a patient", status_code=status.HTTP_201_CREATED)
async def create_patient(
    request: PatientCreateRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> PatientResponse:
    patient = PatientService.create_patient(
        db,
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        phone=request.phone,
        birth_date=request.birth_date,
        notes=request.notes,
    )
    return patient_to_response(patient)


@router.get("/export", summary="Export patients as CSV")
async def export_patients(
    include_inactive: bool = Query(True),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> Response:
    content = PatientService.export_csv(db, include_inactive=include_inactive)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="patients.csv"'},
    )


@router.post("/import", summary="Import patients from CSV")
async def import_patients(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> PatientImportResponse:
    """
    Import a CSV file with a header row.

    Valid rows are saved even when other rows fail; failures are listed with
    their row number.
    """
    raw = await file.read()
    if len(raw) > MAX_IMPORT_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="CSV file is too large"
        )
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file must be UTF-8 encoded"
        )

    report = PatientService.import_csv(db, content)
    logger.info(
        f"User {current_user.user_id} imported patients: "
        f"{report.created} created, {report.updated} updated, {len(report.errors)} error(s)"
    )
    return PatientImportResponse(**report.to_dict())


@router.get("/{patient_id}", summary="Get patient details")
async def get_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> PatientResponse:
    return patient_to_response(PatientService.get_patient(db, patient_id))


@router.patch("/{patient_id}", summary="Update patient information")
async def update_patient(
    patient_id: int,
    request: PatientUpdateRequest,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> PatientResponse:
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update"
        )
    patient = PatientService.update_patient(db, patient_id, updates)
    return patient_to_response(patient)


@router.post("/{patient_id}/deactivate", summary="Deactivate a patient")
async def deactivate_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(require_staff),
) -> PatientResponse:
    return patient_to_response(PatientService.deactivate_patient(db, patient_id))
