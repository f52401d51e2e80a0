# smart_er/schemas/bed.py
from datetime import datetime

from smart_er.models.bed import BedStatus, BedZone
from smart_er.schemas.common import CamelModel


class PatientSummary(CamelModel):
    id: int
    hn: str
    first_name: str
    last_name: str


class BedResponse(CamelModel):
    id: int
    bed_number: str
    label: str
    zone: BedZone
    status: BedStatus
    patient_id: int | None
    esi_level: int | None
    admitted_at: datetime | None
    delivery_status: str | None = None
    other_symptoms: str | None = None
    patient: PatientSummary | None = None


class BedStats(CamelModel):
    available: int
    occupied: int
    queue_count: int


class BedListResponse(CamelModel):
    success: bool = True
    beds: list[BedResponse]
    stats: BedStats


class BedDetailResponse(CamelModel):
    success: bool = True
    bed: BedResponse
