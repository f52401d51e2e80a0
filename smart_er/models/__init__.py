# smart_er/models/__init__.py
# Import every model so Base.metadata is complete (Alembic, create_all).
from smart_er.models.base import Base
from smart_er.models.patient import Patient
from smart_er.models.bed import Bed, BedStatus, BedZone
from smart_er.models.bed_history import DeliveryStatus, HistoryAction, PatientBedHistory
from smart_er.models.queue import Queue, QueueCall, QueueStatus
from smart_er.models.system_setting import SystemSetting
from smart_er.models.user import StaffRole, User

__all__ = [
    "Base",
    "Patient",
    "Bed",
    "BedStatus",
    "BedZone",
    "DeliveryStatus",
    "HistoryAction",
    "PatientBedHistory",
    "Queue",
    "QueueCall",
    "QueueStatus",
    "SystemSetting",
    "StaffRole",
    "User",
]
