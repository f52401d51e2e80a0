# smart_er/models/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Bed occupancy tables (beds, patient_bed_history) are written only by
    the bed action service; queue tables only by the queue service.
    """

    pass
