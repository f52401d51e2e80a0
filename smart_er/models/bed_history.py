# smart_er/models/bed_history.py
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smart_er.models.base import Base
from smart_er.models.bed import Bed
from smart_er.models.patient import Patient
from smart_er.utils.datetime_utils import utc_now


class HistoryAction(str, PyEnum):
    ADMIT = "admit"
    TRANSFER_IN = "transfer_in"


class DeliveryStatus(str, PyEnum):
    """
    Known clinical states of a bed episode, as shown on the bed tablets.

    The column stays free text: anything outside this set is a custom
    status typed by the nurse.
    """

    PENDING_EXAM = "รอตรวจ"
    AWAITING_BLOOD = "รอผลเลือด"
    AWAITING_IMAGING = "รอ x-ray / CT / MRI"
    AWAITING_BLOOD_AND_XRAY = "รอผลเลือดและ X-ray"
    AWAITING_PROCEDURE = "รอทำแผล / ฉีดยา"
    POST_INJECTION_OBSERVATION = "สังเกตอาการหลังฉีดยา"
    SPECIALIST_CONSULT = "ปรึกษาแพทย์เฉพาะทาง"
    AWAITING_OPD = "รอส่ง OPD"
    AWAITING_ADMIT = "รอ Admit"
    AWAITING_MEDICATION = "รอรับยา"
    AWAITING_HOME = "รอกลับบ้าน"
    WENT_HOME = "กลับบ้านเรียบร้อย"
    DISCHARGED = "จำหน่ายแล้ว"

    @classmethod
    def is_known(cls, value: str | None) -> bool:
        return value in cls._value2member_map_


# Suffix appended to the closed episode's status when a patient changes beds
TRANSFERRED_MARKER = " (ย้ายเตียง)"

# Episodes in these states are finished and leave the public display
FINISHED_STATUSES = (DeliveryStatus.WENT_HOME.value, DeliveryStatus.DISCHARGED.value)


class PatientBedHistory(Base):
    """
    One bed stay (episode) of a patient.

    Opened on admit / transfer-in, closed by setting discharge_time on
    discharge / transfer-out, never deleted. A row with discharge_time
    NULL is the open episode; the partial unique indexes below allow at
    most one per bed and one per patient.
    """

    __tablename__ = "patient_bed_history"
    __table_args__ = (
        Index(
            "uq_patient_bed_history_open_bed",
            "bed_id",
            unique=True,
            postgresql_where=text("discharge_time IS NULL"),
            sqlite_where=text("discharge_time IS NULL"),
        ),
        Index(
            "uq_patient_bed_history_open_patient",
            "patient_id",
            unique=True,
            postgresql_where=text("discharge_time IS NULL"),
            sqlite_where=text("discharge_time IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    patient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    bed_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("beds.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    action: Mapped[str] = mapped_column(String(20), nullable=False)
    esi_level: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    delivery_status: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        doc="Clinical status, see DeliveryStatus",
    )
    other_symptoms: Mapped[str | None] = mapped_column(Text, nullable=True)

    admission_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    discharge_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="NULL while the episode is open",
    )
    performed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    patient: Mapped["Patient"] = relationship("Patient", viewonly=True)
    bed: Mapped["Bed"] = relationship("Bed", foreign_keys=[bed_id], viewonly=True)
