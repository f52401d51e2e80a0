import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smart_er.core.database import get_db
from smart_er.schemas.patient import (
    GeneratedHnResponse,
    PatientCreate,
    PatientCreatedResponse,
    PatientResponse,
)
from smart_er.services.patient_service import find_patient_by_hn, next_hn, register_patient

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/patients", response_model=PatientResponse)
def search_patient(
    hn: Optional[str] = Query(None, description="Hospital number"),
    db: Session = Depends(get_db),
) -> PatientResponse:
    """
    Look up a patient by HN (barcode scan on the bed tablet).
    """
    return PatientResponse.model_validate(find_patient_by_hn(db, hn))


@router.post(
    "/patients",
    response_model=PatientCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_patient(
    payload: PatientCreate,
    db: Session = Depends(get_db),
) -> PatientCreatedResponse:
    """
    Register a patient at the front desk.

    Rules:
    - HN must be numeric and not yet registered (409 otherwise)
    - The new patient is put straight into the waiting queue
    """
    patient, ticket = register_patient(db, payload=payload)
    return PatientCreatedResponse(
        id=patient.id,
        hn=patient.hn,
        first_name=patient.first_name,
        last_name=patient.last_name,
        queue_id=ticket.id,
        created_at=patient.created_at,
    )


@router.get("/generate-hn", response_model=GeneratedHnResponse)
def generate_hn(db: Session = Depends(get_db)) -> GeneratedHnResponse:
    """
    Suggest the next free HN for the registration form.
    """
    return GeneratedHnResponse(hn=next_hn(db))
