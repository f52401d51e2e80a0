# smart_er/schemas/view.py
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ViewItem(BaseModel):
    """One row of the public "now serving" worklist (snake_case, as the display reads it)."""

    hn: str
    bed_number: str | None
    bed_label: str | None
    status: str
    esi_level: int
    source: Literal["bed", "queue"]


class ViewDataResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    all_patients: list[ViewItem] = Field(alias="allPatients")
