# smart_er/models/bed.py
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    SmallInteger,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smart_er.models.base import Base
from smart_er.models.patient import Patient
from smart_er.utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from smart_er.models.bed_history import PatientBedHistory


class BedStatus(str, PyEnum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class BedZone(str, PyEnum):
    MAIN = "main"
    TEMPORARY = "temporary"


def _enum_values(enum_cls: type[PyEnum]) -> list[str]:
    return [member.value for member in enum_cls]


class Bed(Base):
    """
    A fixed physical bed slot in the ER.

    Invariants (kept by smart_er.services.bed_action_service):
    - status == OCCUPIED  <=>  patient_id is not None
    - status == AVAILABLE  =>  patient_id, esi_level, admitted_at and
      current_history_id are all None
    - an occupied bed has exactly one open history row, and
      current_history_id points at it
    """

    __tablename__ = "beds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    bed_number: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
    )
    zone: Mapped[BedZone] = mapped_column(
        SAEnum(BedZone, name="bed_zone_enum", values_callable=_enum_values),
        nullable=False,
        default=BedZone.MAIN,
    )
    status: Mapped[BedStatus] = mapped_column(
        SAEnum(BedStatus, name="bed_status_enum", values_callable=_enum_values),
        nullable=False,
        default=BedStatus.AVAILABLE,
        server_default=text("'available'"),
        index=True,
    )

    patient_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    esi_level: Mapped[int | None] = mapped_column(
        SmallInteger,
        nullable=True,
        doc="Triage severity 1 (most severe) .. 5, only while occupied",
    )
    admitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    current_history_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey(
            "patient_bed_history.id",
            name="fk_beds_current_history_id",
            use_alter=True,
            ondelete="SET NULL",
        ),
        nullable=True,
        doc="Open episode of the current occupant",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
    )

    # Relationships (read side only; writes go through UPDATE statements)
    patient: Mapped["Patient | None"] = relationship("Patient", viewonly=True)
    current_history: Mapped["PatientBedHistory | None"] = relationship(
        "PatientBedHistory",
        foreign_keys=[current_history_id],
        viewonly=True,
    )
