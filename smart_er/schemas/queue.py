# smart_er/schemas/queue.py
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from smart_er.models.queue import QueueStatus
from smart_er.schemas.common import CamelModel
from smart_er.schemas.bed import PatientSummary


class QueueAction(str, Enum):
    CALL = "call"
    RECALL = "recall"
    COMPLETE = "complete"
    CANCEL = "cancel"


class QueueCreate(CamelModel):
    patient_id: int


class QueueActionRequest(CamelModel):
    action: str


class QueueTicket(CamelModel):
    id: int
    patient_id: int
    status: QueueStatus
    created_at: datetime
    called_at: datetime | None = None
    patient: PatientSummary | None = None


class QueueListResponse(CamelModel):
    success: bool = True
    waiting: list[QueueTicket]
    called: list[QueueTicket]


class QueueCreatedResponse(CamelModel):
    success: bool = True
    queue: QueueTicket


class QueueActionResponse(CamelModel):
    success: bool = True
    queue: QueueTicket


class QueueCallItem(BaseModel):
    """One announcement for the speech engine (snake_case, as the display reads it)."""

    id: int
    hn: str
    patient_name: str
    bed_number: str | None = None
    called_at: datetime


class QueueCallsResponse(BaseModel):
    success: bool = True
    calls: list[QueueCallItem]
