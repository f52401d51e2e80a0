import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smart_er.core.database import get_db
from smart_er.schemas.bed_action import BedActionRequest, BedActionResponse
from smart_er.services.bed_action_service import apply_bed_action

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=BedActionResponse)
def post_bed_action(
    payload: BedActionRequest,
    db: Session = Depends(get_db),
) -> BedActionResponse:
    """
    Apply one action to a bed.

    Actions: scan_barcode (admit by HN), update_esi, update_status,
    discharge, transfer (to targetBedNumber).

    Errors: 400 bad input or wrong bed state, 404 unknown bed / patient /
    target bed, 409 bed or target already occupied, 500 data-store failure.
    Called by the bed tablets, which are not logged in.
    """
    message = apply_bed_action(db, payload)
    return BedActionResponse(message=message)
