# smart_er/api/v1/router.py
from fastapi import APIRouter

from smart_er.api.v1.endpoints import (
    auth,
    bed_actions,
    beds,
    patients,
    queues,
    settings,
    view_data,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(bed_actions.router, prefix="/bed-actions", tags=["bed-actions"])
api_router.include_router(beds.router, prefix="/beds", tags=["beds"])
api_router.include_router(patients.router, tags=["patients"])
api_router.include_router(queues.router, tags=["queues"])
api_router.include_router(view_data.router, prefix="/view-data", tags=["view"])
api_router.include_router(settings.router, tags=["settings"])
