# smart_er/services/view_service.py
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from smart_er.models.bed import Bed
from smart_er.models.bed_history import FINISHED_STATUSES, PatientBedHistory
from smart_er.models.patient import Patient
from smart_er.models.queue import Queue, QueueStatus
from smart_er.schemas.view import ViewItem
from smart_er.utils.bed_layout import bed_label
from smart_er.utils.datetime_utils import as_utc

# Sort ranks below ESI 5: triaged patients always come first
UNTRIAGED_SEVERITY = 6
QUEUE_SEVERITY = 7

QUEUE_STATUS_TEXT = "รอเรียกคิว"


def build_worklist(db: Session) -> list[ViewItem]:
    """
    Public "now serving" list: patients in beds with an open, unfinished
    episode plus everyone waiting in the queue.

    Ordered by (severity, time) ascending. Severity is the episode ESI
    (1 = most severe), 6 when not yet triaged, 7 for queue tickets; time is
    the admission time for beds and the ticket creation time for the queue.
    """
    ranked: list[tuple[int, datetime, ViewItem]] = []

    episodes = (
        db.query(PatientBedHistory, Patient, Bed)
        .join(Patient, PatientBedHistory.patient_id == Patient.id)
        .join(Bed, PatientBedHistory.bed_id == Bed.id)
        .filter(
            PatientBedHistory.discharge_time.is_(None),
            or_(
                PatientBedHistory.delivery_status.is_(None),
                PatientBedHistory.delivery_status.notin_(FINISHED_STATUSES),
            ),
        )
        .all()
    )
    for episode, patient, bed in episodes:
        severity = episode.esi_level if episode.esi_level is not None else UNTRIAGED_SEVERITY
        sort_time = as_utc(episode.admission_time or episode.performed_at)
        ranked.append(
            (
                severity,
                sort_time,
                ViewItem(
                    hn=patient.hn,
                    bed_number=bed.bed_number,
                    bed_label=bed_label(bed.bed_number),
                    status=episode.delivery_status or "-",
                    esi_level=severity,
                    source="bed",
                ),
            )
        )

    tickets = (
        db.query(Queue, Patient)
        .join(Patient, Queue.patient_id == Patient.id)
        .filter(Queue.status == QueueStatus.WAITING)
        .all()
    )
    for ticket, patient in tickets:
        ranked.append(
            (
                QUEUE_SEVERITY,
                as_utc(ticket.created_at),
                ViewItem(
                    hn=patient.hn,
                    bed_number=None,
                    bed_label=None,
                    status=QUEUE_STATUS_TEXT,
                    esi_level=QUEUE_SEVERITY,
                    source="queue",
                ),
            )
        )

    ranked.sort(key=lambda entry: (entry[0], entry[1]))
    return [item for _, _, item in ranked]
