from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smart_er.core.database import get_db
from smart_er.schemas.view import ViewDataResponse
from smart_er.services.view_service import build_worklist

router = APIRouter()


@router.get("", response_model=ViewDataResponse)
def get_view_data(db: Session = Depends(get_db)) -> ViewDataResponse:
    """
    Worklist for the public display: beds then queue, most severe first.
    """
    return ViewDataResponse(all_patients=build_worklist(db))
