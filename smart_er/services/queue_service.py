# smart_er/services/queue_service.py
"""
Waiting-room queue.

One active (waiting or called) ticket per patient. call / recall re-stamp
called_at and append to the queue_calls log that drives the speech feed,
from any status; complete and cancel end the ticket.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from smart_er.core.config import get_settings
from smart_er.core.database import transaction
from smart_er.core.errors import ConflictError, InternalError, InvalidArgumentError, NotFoundError
from smart_er.models.patient import Patient
from smart_er.models.queue import (
    ACTIVE_QUEUE_STATUSES,
    TERMINAL_QUEUE_STATUSES,
    Queue,
    QueueCall,
    QueueStatus,
)
from smart_er.schemas.queue import QueueAction, QueueCallItem
from smart_er.utils.datetime_utils import seconds_ago, utc_now

logger = logging.getLogger(__name__)


def list_queues(db: Session) -> tuple[list[Queue], list[Queue]]:
    """Waiting tickets oldest first, called tickets most recently called first."""
    base = db.query(Queue).options(joinedload(Queue.patient))
    waiting = (
        base.filter(Queue.status == QueueStatus.WAITING)
        .order_by(Queue.created_at.asc(), Queue.id.asc())
        .all()
    )
    called = (
        base.filter(Queue.status == QueueStatus.CALLED)
        .order_by(Queue.called_at.desc(), Queue.id.desc())
        .all()
    )
    return waiting, called


def get_active_ticket(db: Session, patient_id: int) -> Queue | None:
    return (
        db.query(Queue)
        .filter(
            Queue.patient_id == patient_id,
            Queue.status.in_(ACTIVE_QUEUE_STATUSES),
        )
        .first()
    )


def add_ticket(db: Session, patient_id: int) -> Queue:
    """
    Create a waiting ticket without committing (registration commits it
    together with the patient row).
    """
    if get_active_ticket(db, patient_id):
        raise ConflictError("Patient already has an active queue")
    ticket = Queue(patient_id=patient_id, status=QueueStatus.WAITING, created_at=utc_now())
    db.add(ticket)
    db.flush()
    return ticket


def enqueue_patient(db: Session, *, patient_id: int) -> Queue:
    """
    Put a registered patient in the waiting queue.

    Rules:
    - Patient must exist
    - Patient must not already have a waiting or called ticket
    """
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise NotFoundError("Patient not found")

    try:
        with transaction(db):
            ticket = add_ticket(db, patient_id)
    except IntegrityError:
        # partial unique index caught a concurrent enqueue
        raise ConflictError("Patient already has an active queue") from None
    except SQLAlchemyError:
        logger.exception("Failed to create queue ticket patient=%s", patient_id)
        raise InternalError("Failed to create queue") from None

    logger.info("Queued patient hn=%s ticket=%s", patient.hn, ticket.id)
    return get_ticket(db, ticket.id)


def get_ticket(db: Session, queue_id: int) -> Queue:
    ticket = (
        db.query(Queue)
        .options(joinedload(Queue.patient))
        .filter(Queue.id == queue_id)
        .first()
    )
    if not ticket:
        raise NotFoundError("Queue not found")
    return ticket


def apply_queue_action(db: Session, *, queue_id: int, action: str) -> Queue:
    """
    call / recall / complete / cancel one ticket.

    call and recall are the same transition and are accepted from any
    status (a re-announce). Re-activating a completed or cancelled ticket
    is refused while the patient holds another active ticket. complete and
    cancel end the ticket; repeating them on a finished ticket is a conflict.
    """
    try:
        queue_action = QueueAction(action)
    except ValueError:
        raise InvalidArgumentError(f"Unknown action: {action}") from None

    ticket = get_ticket(db, queue_id)
    announce = queue_action in (QueueAction.CALL, QueueAction.RECALL)

    if announce and ticket.status in TERMINAL_QUEUE_STATUSES:
        other = get_active_ticket(db, ticket.patient_id)
        if other and other.id != ticket.id:
            raise ConflictError("Patient already has an active queue")
    if not announce and ticket.status in TERMINAL_QUEUE_STATUSES:
        raise ConflictError(f"Queue is already {ticket.status.value}")

    try:
        with transaction(db):
            if announce:
                now = utc_now()
                ticket.status = QueueStatus.CALLED
                ticket.called_at = now
                db.add(QueueCall(queue_id=ticket.id, called_at=now))
            elif queue_action is QueueAction.COMPLETE:
                ticket.status = QueueStatus.COMPLETED
            else:
                ticket.status = QueueStatus.CANCELLED
    except IntegrityError:
        # uq_queues_active_patient: a concurrent request activated another ticket
        raise ConflictError("Patient already has an active queue") from None
    except SQLAlchemyError:
        logger.exception("Failed to update queue=%s action=%s", queue_id, action)
        raise InternalError("Failed to update queue") from None

    logger.info("Queue ticket=%s action=%s", queue_id, queue_action.value)
    return get_ticket(db, queue_id)


def recent_calls(db: Session, window_seconds: int | None = None) -> list[QueueCallItem]:
    """
    Tickets announced within the trailing window, newest first, one entry per ticket.

    Only tickets still in the called state are returned; completing or
    cancelling a ticket stops its announcement.
    """
    if window_seconds is None:
        window_seconds = get_settings().queue_call_window_seconds
    since = seconds_ago(window_seconds)

    rows = (
        db.query(QueueCall, Queue, Patient)
        .join(Queue, QueueCall.queue_id == Queue.id)
        .join(Patient, Queue.patient_id == Patient.id)
        .filter(
            QueueCall.called_at >= since,
            Queue.status == QueueStatus.CALLED,
        )
        .order_by(QueueCall.called_at.desc(), QueueCall.id.desc())
        .all()
    )

    calls: list[QueueCallItem] = []
    seen: set[int] = set()
    for call, ticket, patient in rows:
        if ticket.id in seen:
            continue
        seen.add(ticket.id)
        calls.append(
            QueueCallItem(
                id=ticket.id,
                hn=patient.hn,
                patient_name=patient.full_name,
                bed_number=None,
                called_at=call.called_at,
            )
        )
    return calls
