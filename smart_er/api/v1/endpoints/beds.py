from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smart_er.core.database import get_db
from smart_er.schemas.bed import BedDetailResponse, BedListResponse
from smart_er.services.bed_service import get_bed, list_beds

router = APIRouter()


@router.get("", response_model=BedListResponse)
def get_beds(db: Session = Depends(get_db)) -> BedListResponse:
    """
    All beds with their occupant, open-episode status and occupancy counts.
    """
    beds, stats = list_beds(db)
    return BedListResponse(beds=beds, stats=stats)


@router.get("/{bed_number}", response_model=BedDetailResponse)
def get_single_bed(bed_number: str, db: Session = Depends(get_db)) -> BedDetailResponse:
    return BedDetailResponse(bed=get_bed(db, bed_number))
