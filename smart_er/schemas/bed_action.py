# smart_er/schemas/bed_action.py
from enum import Enum
from typing import Any

from pydantic import field_validator

from smart_er.schemas.common import CamelModel


class BedAction(str, Enum):
    SCAN_BARCODE = "scan_barcode"
    UPDATE_ESI = "update_esi"
    UPDATE_STATUS = "update_status"
    DISCHARGE = "discharge"
    TRANSFER = "transfer"


class BedActionRequest(CamelModel):
    """
    Body of POST /bed-actions.

    `action` stays a plain string so an unknown action is reported by the
    service with its name rather than as a schema error.
    """

    action: str
    bed_number: str
    hn: str | None = None
    esi_level: int | None = None
    delivery_status: str | None = None
    other_symptoms: str | None = None
    target_bed_number: str | None = None

    @field_validator("bed_number", "target_bed_number", mode="before")
    @classmethod
    def numbers_as_text(cls, v: Any) -> Any:
        # tablets sometimes send bed numbers as JSON numbers
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("hn", mode="before")
    @classmethod
    def strip_hn(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("esi_level", mode="before")
    @classmethod
    def blank_esi_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class BedActionResponse(CamelModel):
    success: bool = True
    message: str
