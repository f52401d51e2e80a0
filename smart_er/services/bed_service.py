# smart_er/services/bed_service.py
import logging

from sqlalchemy import and_, func
from sqlalchemy.orm import Session, joinedload

from smart_er.core.errors import NotFoundError
from smart_er.models.bed import Bed, BedStatus, BedZone
from smart_er.models.bed_history import PatientBedHistory
from smart_er.models.queue import Queue, QueueStatus
from smart_er.schemas.bed import BedResponse, BedStats, PatientSummary
from smart_er.utils.bed_layout import all_bed_numbers, bed_label, zone_for

logger = logging.getLogger(__name__)


def _beds_with_open_episode(db: Session):
    """
    Beds joined to their occupant's open episode.

    The join requires the episode to belong to the current occupant and to
    be open, so a previous occupant's status can never show on the bed.
    """
    return (
        db.query(Bed, PatientBedHistory)
        .outerjoin(
            PatientBedHistory,
            and_(
                PatientBedHistory.bed_id == Bed.id,
                PatientBedHistory.patient_id == Bed.patient_id,
                PatientBedHistory.discharge_time.is_(None),
            ),
        )
        .options(joinedload(Bed.patient))
    )


def _to_response(bed: Bed, episode: PatientBedHistory | None) -> BedResponse:
    patient = bed.patient if bed.patient_id is not None else None
    return BedResponse(
        id=bed.id,
        bed_number=bed.bed_number,
        label=bed_label(bed.bed_number),
        zone=bed.zone,
        status=bed.status,
        patient_id=bed.patient_id,
        esi_level=bed.esi_level,
        admitted_at=bed.admitted_at,
        delivery_status=episode.delivery_status if episode else None,
        other_symptoms=episode.other_symptoms if episode else None,
        patient=PatientSummary.model_validate(patient) if patient else None,
    )


def list_beds(db: Session) -> tuple[list[BedResponse], BedStats]:
    """All bed slots in id order, plus occupancy counts and the waiting-queue length."""
    rows = _beds_with_open_episode(db).order_by(Bed.id.asc()).all()
    beds = [_to_response(bed, episode) for bed, episode in rows]

    queue_count = (
        db.query(func.count(Queue.id))
        .filter(Queue.status == QueueStatus.WAITING)
        .scalar()
    ) or 0

    stats = BedStats(
        available=sum(1 for b in beds if b.status == BedStatus.AVAILABLE),
        occupied=sum(1 for b in beds if b.status == BedStatus.OCCUPIED),
        queue_count=queue_count,
    )
    return beds, stats


def get_bed(db: Session, bed_number: str) -> BedResponse:
    row = _beds_with_open_episode(db).filter(Bed.bed_number == bed_number).first()
    if not row:
        raise NotFoundError(f"Bed {bed_number} not found")
    bed, episode = row
    return _to_response(bed, episode)


def ensure_bed_slots(db: Session) -> int:
    """
    Create any missing bed slots 1..38 (zone derived from the number).
    Safe to run on every boot. Returns how many were created.
    """
    existing = {number for (number,) in db.query(Bed.bed_number).all()}
    created = 0
    for number in all_bed_numbers():
        if number in existing:
            continue
        db.add(
            Bed(
                bed_number=number,
                zone=BedZone(zone_for(number)),
                status=BedStatus.AVAILABLE,
            )
        )
        created += 1

    if created:
        db.commit()
        logger.info("Created %d bed slots", created)
    return created
