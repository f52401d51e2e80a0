# smart_er/models/queue.py
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from smart_er.models.base import Base
from smart_er.models.patient import Patient
from smart_er.utils.datetime_utils import utc_now


class QueueStatus(str, PyEnum):
    WAITING = "waiting"
    CALLED = "called"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_QUEUE_STATUSES = (QueueStatus.WAITING, QueueStatus.CALLED)
TERMINAL_QUEUE_STATUSES = (QueueStatus.COMPLETED, QueueStatus.CANCELLED)


class Queue(Base):
    """
    Waiting-room ticket of a walk-in patient.

    At most one ticket per patient may be waiting or called at a time
    (partial unique index).
    """

    __tablename__ = "queues"
    __table_args__ = (
        Index(
            "uq_queues_active_patient",
            "patient_id",
            unique=True,
            postgresql_where=text("status IN ('waiting', 'called')"),
            sqlite_where=text("status IN ('waiting', 'called')"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    patient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[QueueStatus] = mapped_column(
        SAEnum(
            QueueStatus,
            name="queue_status_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=QueueStatus.WAITING,
        server_default=text("'waiting'"),
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    called_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    patient: Mapped["Patient"] = relationship("Patient", viewonly=True)


class QueueCall(Base):
    """
    Append-only log of call / recall announcements.
    The public display speaks every ticket called within the last few seconds.
    """

    __tablename__ = "queue_calls"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    queue_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("queues.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    called_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        index=True,
    )

    queue: Mapped["Queue"] = relationship("Queue", viewonly=True)
