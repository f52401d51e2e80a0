# smart_er/schemas/patient.py
from datetime import datetime
from typing import Any

from pydantic import field_validator

from smart_er.schemas.common import CamelModel


class PatientCreate(CamelModel):
    hn: str
    first_name: str
    last_name: str

    @field_validator("hn", "first_name", "last_name", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class PatientResponse(CamelModel):
    id: int
    hn: str
    first_name: str
    last_name: str


class PatientCreatedResponse(PatientResponse):
    success: bool = True
    queue_id: int | None = None
    created_at: datetime | None = None


class GeneratedHnResponse(CamelModel):
    success: bool = True
    hn: str
