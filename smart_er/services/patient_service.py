# smart_er/services/patient_service.py
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from smart_er.core.database import transaction
from smart_er.core.errors import ConflictError, InternalError, InvalidArgumentError, NotFoundError
from smart_er.models.patient import Patient
from smart_er.models.queue import Queue
from smart_er.schemas.patient import PatientCreate
from smart_er.services.queue_service import add_ticket
from smart_er.utils.id_generators import generate_hn, is_valid_hn

logger = logging.getLogger(__name__)


def find_patient_by_hn(db: Session, hn: str | None) -> Patient:
    if not hn or not hn.strip():
        raise InvalidArgumentError("hn is required")
    patient = db.query(Patient).filter(Patient.hn == hn.strip()).first()
    if not patient:
        raise NotFoundError("Patient not found")
    return patient


def register_patient(db: Session, *, payload: PatientCreate) -> tuple[Patient, Queue]:
    """
    Register a walk-in patient and put them in the waiting queue.

    Rules:
    - hn, first name and last name are required; hn is numeric
    - hn must be unique
    - patient row and waiting ticket are committed together
    """
    if not payload.hn or not payload.first_name or not payload.last_name:
        raise InvalidArgumentError("hn, firstName, lastName required")
    if not is_valid_hn(payload.hn):
        raise InvalidArgumentError("hn must contain digits only")

    if db.query(Patient.id).filter(Patient.hn == payload.hn).first():
        raise ConflictError("HN already exists")

    patient = Patient(
        hn=payload.hn,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )

    try:
        with transaction(db):
            db.add(patient)
            db.flush()  # Get ID without committing
            ticket = add_ticket(db, patient.id)
    except IntegrityError:
        raise ConflictError("HN already exists") from None
    except SQLAlchemyError:
        logger.exception("Failed to register patient hn=%s", payload.hn)
        raise InternalError("Failed to create patient") from None

    logger.info("Registered patient hn=%s queue=%s", patient.hn, ticket.id)
    return patient, ticket


def next_hn(db: Session) -> str:
    return generate_hn(db)
