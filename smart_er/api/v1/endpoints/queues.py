import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from smart_er.core.database import get_db
from smart_er.schemas.queue import (
    QueueActionRequest,
    QueueActionResponse,
    QueueCallsResponse,
    QueueCreate,
    QueueCreatedResponse,
    QueueListResponse,
    QueueTicket,
)
from smart_er.services.queue_service import (
    apply_queue_action,
    enqueue_patient,
    list_queues,
    recent_calls,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/queues", response_model=QueueListResponse)
def get_queues(db: Session = Depends(get_db)) -> QueueListResponse:
    waiting, called = list_queues(db)
    return QueueListResponse(
        waiting=[QueueTicket.model_validate(q) for q in waiting],
        called=[QueueTicket.model_validate(q) for q in called],
    )


@router.post(
    "/queues",
    response_model=QueueCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_queue(
    payload: QueueCreate,
    db: Session = Depends(get_db),
) -> QueueCreatedResponse:
    """
    Add a registered patient to the waiting queue (409 if already queued).
    """
    ticket = enqueue_patient(db, patient_id=payload.patient_id)
    return QueueCreatedResponse(queue=QueueTicket.model_validate(ticket))


@router.put("/queues/{queue_id}", response_model=QueueActionResponse)
def update_queue(
    queue_id: int,
    payload: QueueActionRequest,
    db: Session = Depends(get_db),
) -> QueueActionResponse:
    """
    call / recall / complete / cancel a ticket.
    """
    ticket = apply_queue_action(db, queue_id=queue_id, action=payload.action)
    return QueueActionResponse(queue=QueueTicket.model_validate(ticket))


@router.get("/queue-calls", response_model=QueueCallsResponse)
def get_queue_calls(db: Session = Depends(get_db)) -> QueueCallsResponse:
    """
    Tickets called in the last few seconds, for the display's speech loop.
    """
    return QueueCallsResponse(calls=recent_calls(db))
