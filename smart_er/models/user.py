# smart_er/models/user.py
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from smart_er.models.base import Base
from smart_er.utils.datetime_utils import utc_now


class StaffRole(str, PyEnum):
    ADMIN = "admin"
    NURSE = "nurse"
    TRIAGE = "triage"


class User(Base):
    """
    ER staff account (front desk, triage, nursing).
    Bed tablets and the public display do not log in.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[StaffRole] = mapped_column(
        SAEnum(
            StaffRole,
            name="staff_role_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=StaffRole.NURSE,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
    )
