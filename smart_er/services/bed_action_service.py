# smart_er/services/bed_action_service.py
"""
Bed transaction engine.

The only writer of `beds` and `patient_bed_history`. Each action runs as a
single transaction: validation happens first, every write is a
compare-and-set UPDATE (the affected-row count tells us whether the bed was
still in the state we read), and any failure rolls the whole action back.

State machine per bed:

    available --scan_barcode--> occupied
    occupied  --update_esi / update_status--> occupied
    occupied  --discharge--> available
    occupied  --transfer--> available   (target: available --> occupied)
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from smart_er.core.database import transaction
from smart_er.core.errors import (
    ConflictError,
    ERError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
)
from smart_er.models.bed import Bed, BedStatus
from smart_er.models.bed_history import (
    DeliveryStatus,
    HistoryAction,
    PatientBedHistory,
    TRANSFERRED_MARKER,
)
from smart_er.models.patient import Patient
from smart_er.schemas.bed_action import BedAction, BedActionRequest
from smart_er.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

ESI_MIN = 1
ESI_MAX = 5
DELIVERY_STATUS_MAX_LENGTH = 100


@contextmanager
def _bed_transaction(db: Session, action: str, bed_number: str) -> Generator[None, None, None]:
    """
    Run one bed action atomically and map failures onto the error taxonomy.

    Rejections pass through unchanged; a unique-index violation means a
    concurrent request changed the same bed or patient first; any other
    data-store failure becomes InternalError (details only in the log).
    """
    try:
        with transaction(db):
            yield
    except ERError as exc:
        logger.info(
            "Bed action rejected action=%s bed=%s kind=%s: %s",
            action,
            bed_number,
            exc.kind,
            exc.message,
        )
        raise
    except IntegrityError:
        logger.warning("Bed action lost a race action=%s bed=%s", action, bed_number)
        raise ConflictError("Bed state changed by another request, please retry") from None
    except SQLAlchemyError:
        logger.exception("Bed action failed action=%s bed=%s", action, bed_number)
        raise InternalError("Failed to process bed action") from None


def _get_bed(db: Session, bed_number: str, *, lock: bool = False) -> Bed:
    query = db.query(Bed).filter(Bed.bed_number == bed_number)
    if lock:
        query = query.with_for_update().populate_existing()
    bed = query.first()
    if not bed:
        raise NotFoundError(f"Bed {bed_number} not found")
    return bed


def _lock_beds(db: Session, *bed_ids: int) -> None:
    """Row-lock several beds in id order so opposite transfers cannot deadlock."""
    (
        db.query(Bed)
        .filter(Bed.id.in_(bed_ids))
        .order_by(Bed.id)
        .with_for_update()
        .populate_existing()
        .all()
    )


def _validate_esi(esi_level: int | None) -> int:
    if esi_level is None or not (ESI_MIN <= esi_level <= ESI_MAX):
        raise InvalidArgumentError(f"ESI must be {ESI_MIN}-{ESI_MAX}")
    return esi_level


def _require_occupied(bed: Bed, message: str) -> int:
    if bed.status != BedStatus.OCCUPIED or bed.patient_id is None:
        raise InvalidArgumentError(message)
    return bed.patient_id


def _open_episode(db: Session, bed: Bed) -> PatientBedHistory | None:
    """
    The open episode of the bed's current occupant.

    Follows beds.current_history_id when it is set; rows written before that
    column existed are found by the (patient, bed, discharge_time IS NULL) key.
    """
    query = db.query(PatientBedHistory).filter(
        PatientBedHistory.bed_id == bed.id,
        PatientBedHistory.patient_id == bed.patient_id,
        PatientBedHistory.discharge_time.is_(None),
    )
    if bed.current_history_id is not None:
        query = query.filter(PatientBedHistory.id == bed.current_history_id)
    return query.populate_existing().first()


def _start_episode(
    db: Session,
    *,
    patient_id: int,
    bed_id: int,
    action: HistoryAction,
    delivery_status: str,
    other_symptoms: str | None = None,
    esi_level: int | None = None,
    now=None,
) -> PatientBedHistory:
    now = now or utc_now()
    episode = PatientBedHistory(
        patient_id=patient_id,
        bed_id=bed_id,
        action=action.value,
        delivery_status=delivery_status,
        other_symptoms=other_symptoms,
        esi_level=esi_level,
        admission_time=now,
        performed_at=now,
    )
    db.add(episode)
    db.flush()
    db.execute(
        update(Bed).where(Bed.id == bed_id).values(current_history_id=episode.id)
    )
    return episode


def _close_episode(db: Session, episode: PatientBedHistory, *, delivery_status: str, now) -> None:
    closed = db.execute(
        update(PatientBedHistory)
        .where(
            PatientBedHistory.id == episode.id,
            PatientBedHistory.discharge_time.is_(None),
        )
        .values(discharge_time=now, delivery_status=delivery_status)
    )
    if closed.rowcount != 1:
        raise ConflictError("Bed state changed by another request, please retry")


def _clear_bed(db: Session, bed: Bed, *, patient_id: int, now) -> None:
    cleared = db.execute(
        update(Bed)
        .where(
            Bed.id == bed.id,
            Bed.status == BedStatus.OCCUPIED,
            Bed.patient_id == patient_id,
        )
        .values(
            status=BedStatus.AVAILABLE,
            patient_id=None,
            esi_level=None,
            admitted_at=None,
            current_history_id=None,
            updated_at=now,
        )
    )
    if cleared.rowcount != 1:
        raise ConflictError("Bed state changed by another request, please retry")


def _occupy_bed(db: Session, bed: Bed, *, patient_id: int, esi_level: int | None, now) -> bool:
    """Compare-and-set available -> occupied. False if someone else got there first."""
    claimed = db.execute(
        update(Bed)
        .where(Bed.id == bed.id, Bed.status == BedStatus.AVAILABLE)
        .values(
            status=BedStatus.OCCUPIED,
            patient_id=patient_id,
            esi_level=esi_level,
            admitted_at=now,
            updated_at=now,
        )
    )
    return claimed.rowcount == 1


def _set_episode_esi(db: Session, bed: Bed, patient_id: int, esi_level: int) -> None:
    updated = db.execute(
        update(Bed)
        .where(
            Bed.id == bed.id,
            Bed.status == BedStatus.OCCUPIED,
            Bed.patient_id == patient_id,
        )
        .values(esi_level=esi_level, updated_at=utc_now())
    )
    if updated.rowcount != 1:
        raise ConflictError("Bed state changed by another request, please retry")

    episode = _open_episode(db, bed)
    if episode:
        db.execute(
            update(PatientBedHistory)
            .where(PatientBedHistory.id == episode.id)
            .values(esi_level=esi_level)
        )


def admit_patient(db: Session, *, bed_number: str, hn: str | None) -> str:
    """
    scan_barcode: put the patient with this HN into an available bed.

    Rules:
    - Bed must exist, HN is required and must belong to a patient
    - Bed must be available (occupied -> conflict, maintenance -> conflict)
    - Patient must not already hold an open episode in another bed
    """
    with _bed_transaction(db, BedAction.SCAN_BARCODE.value, bed_number):
        bed = _get_bed(db, bed_number, lock=True)
        if not hn:
            raise InvalidArgumentError("hn is required")

        patient = db.query(Patient).filter(Patient.hn == hn).first()
        if not patient:
            raise NotFoundError(f"Patient HN {hn} not found")

        if bed.status == BedStatus.OCCUPIED:
            raise ConflictError("Bed is already occupied")
        if bed.status != BedStatus.AVAILABLE:
            raise ConflictError(f"Bed {bed_number} is under maintenance")

        elsewhere = (
            db.query(Bed)
            .filter(Bed.patient_id == patient.id, Bed.status == BedStatus.OCCUPIED)
            .first()
        )
        if elsewhere:
            raise ConflictError(f"Patient HN {hn} is already in bed {elsewhere.bed_number}")

        now = utc_now()
        if not _occupy_bed(db, bed, patient_id=patient.id, esi_level=None, now=now):
            raise ConflictError("Bed is already occupied")

        _start_episode(
            db,
            patient_id=patient.id,
            bed_id=bed.id,
            action=HistoryAction.ADMIT,
            delivery_status=DeliveryStatus.PENDING_EXAM.value,
            now=now,
        )

    logger.info("Admitted patient hn=%s to bed=%s", hn, bed_number)
    return "รับผู้ป่วยเข้าเตียงสำเร็จ"


def update_esi(db: Session, *, bed_number: str, esi_level: int | None) -> str:
    """
    update_esi: set the triage level of an occupied bed and its open episode.
    """
    with _bed_transaction(db, BedAction.UPDATE_ESI.value, bed_number):
        bed = _get_bed(db, bed_number, lock=True)
        level = _validate_esi(esi_level)
        patient_id = _require_occupied(bed, "No patient in bed")
        _set_episode_esi(db, bed, patient_id, level)

    logger.info("Set ESI level=%s on bed=%s", level, bed_number)
    return f"อัปเดต ESI Level {level} สำเร็จ"


def update_status(
    db: Session,
    *,
    bed_number: str,
    delivery_status: str | None,
    other_symptoms: str | None,
    esi_level: int | None = None,
) -> str:
    """
    update_status: record clinical progress on the open episode.

    A blank delivery status falls back to "pending exam"; blank symptoms are
    stored as NULL. An ESI level, when given, must be 1-5 and is checked
    before anything is written.
    """
    with _bed_transaction(db, BedAction.UPDATE_STATUS.value, bed_number):
        bed = _get_bed(db, bed_number, lock=True)
        patient_id = _require_occupied(bed, "No patient in bed")
        level = _validate_esi(esi_level) if esi_level is not None else None

        status_text = (delivery_status or "").strip() or DeliveryStatus.PENDING_EXAM.value
        if len(status_text) > DELIVERY_STATUS_MAX_LENGTH:
            raise InvalidArgumentError(
                f"deliveryStatus must be at most {DELIVERY_STATUS_MAX_LENGTH} characters"
            )
        symptoms = (other_symptoms or "").strip() or None

        episode = _open_episode(db, bed)
        if not episode:
            raise ConflictError(f"Bed {bed_number} has no open episode")

        db.execute(
            update(PatientBedHistory)
            .where(PatientBedHistory.id == episode.id)
            .values(delivery_status=status_text, other_symptoms=symptoms)
        )
        if level is not None:
            _set_episode_esi(db, bed, patient_id, level)

    if not DeliveryStatus.is_known(status_text):
        logger.debug("Custom delivery status on bed=%s: %s", bed_number, status_text)
    logger.info("Updated status on bed=%s", bed_number)
    return "บันทึกสำเร็จ"


def discharge(db: Session, *, bed_number: str) -> str:
    """
    discharge: close the open episode and free the bed.
    """
    with _bed_transaction(db, BedAction.DISCHARGE.value, bed_number):
        bed = _get_bed(db, bed_number, lock=True)
        patient_id = _require_occupied(bed, "Bed is not occupied")

        now = utc_now()
        episode = _open_episode(db, bed)
        if episode:
            _close_episode(db, episode, delivery_status=DeliveryStatus.DISCHARGED.value, now=now)
        else:
            logger.warning("Discharging bed=%s without an open episode", bed_number)
        _clear_bed(db, bed, patient_id=patient_id, now=now)

    logger.info("Discharged bed=%s", bed_number)
    return "จำหน่ายผู้ป่วยสำเร็จ"


def transfer(db: Session, *, bed_number: str, target_bed_number: str | None) -> str:
    """
    transfer: move the occupant of one bed into an available bed.

    All four writes (occupy target, close source episode, clear source,
    open transfer_in episode at target) commit together or not at all.
    The new episode carries over delivery status, symptoms and ESI.
    """
    with _bed_transaction(db, BedAction.TRANSFER.value, bed_number):
        bed = _get_bed(db, bed_number)
        if not target_bed_number:
            raise InvalidArgumentError("targetBedNumber required")
        if target_bed_number == bed_number:
            raise InvalidArgumentError("Target bed must be different from source bed")
        _require_occupied(bed, "Source bed is not occupied")

        target = db.query(Bed).filter(Bed.bed_number == target_bed_number).first()
        if not target:
            raise NotFoundError("Target bed not found")

        _lock_beds(db, bed.id, target.id)
        patient_id = _require_occupied(bed, "Source bed is not occupied")
        if target.status == BedStatus.OCCUPIED:
            raise ConflictError("Target bed is occupied")
        if target.status != BedStatus.AVAILABLE:
            raise ConflictError(f"Target bed {target_bed_number} is under maintenance")

        episode = _open_episode(db, bed)
        carried_status = (
            episode.delivery_status if episode and episode.delivery_status
            else DeliveryStatus.PENDING_EXAM.value
        )
        carried_symptoms = episode.other_symptoms if episode else None
        carried_esi = episode.esi_level if episode and episode.esi_level is not None else bed.esi_level

        now = utc_now()
        if not _occupy_bed(db, target, patient_id=patient_id, esi_level=carried_esi, now=now):
            raise ConflictError("Target bed is occupied")

        if episode:
            base = episode.delivery_status or ""
            closed_status = base[: DELIVERY_STATUS_MAX_LENGTH - len(TRANSFERRED_MARKER)] + TRANSFERRED_MARKER
            _close_episode(db, episode, delivery_status=closed_status, now=now)
        _clear_bed(db, bed, patient_id=patient_id, now=now)

        _start_episode(
            db,
            patient_id=patient_id,
            bed_id=target.id,
            action=HistoryAction.TRANSFER_IN,
            delivery_status=carried_status,
            other_symptoms=carried_symptoms,
            esi_level=carried_esi,
            now=now,
        )

    logger.info("Transferred patient from bed=%s to bed=%s", bed_number, target_bed_number)
    return f"ย้ายเตียงไป {target_bed_number} สำเร็จ"


def apply_bed_action(db: Session, payload: BedActionRequest) -> str:
    """Dispatch one bed action request. Returns the success message."""
    if not payload.action or not payload.bed_number:
        raise InvalidArgumentError("action and bedNumber required")

    try:
        action = BedAction(payload.action)
    except ValueError:
        raise InvalidArgumentError(f"Unknown action: {payload.action}") from None

    if action is BedAction.SCAN_BARCODE:
        return admit_patient(db, bed_number=payload.bed_number, hn=payload.hn)
    if action is BedAction.UPDATE_ESI:
        return update_esi(db, bed_number=payload.bed_number, esi_level=payload.esi_level)
    if action is BedAction.UPDATE_STATUS:
        return update_status(
            db,
            bed_number=payload.bed_number,
            delivery_status=payload.delivery_status,
            other_symptoms=payload.other_symptoms,
            esi_level=payload.esi_level,
        )
    if action is BedAction.DISCHARGE:
        return discharge(db, bed_number=payload.bed_number)
    return transfer(
        db,
        bed_number=payload.bed_number,
        target_bed_number=payload.target_bed_number,
    )
