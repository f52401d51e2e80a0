import logging

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from smart_er.api.v1.endpoints.auth import get_current_user
from smart_er.core.database import get_db
from smart_er.models.user import User
from smart_er.schemas.settings import (
    SoundSettingsResponse,
    SoundSettingsUpdate,
    ThemeRequest,
    ThemeResponse,
)
from smart_er.services.settings_service import (
    get_sound_settings,
    get_theme,
    save_sound_settings,
    save_theme,
)
from smart_er.services.tts_service import fetch_speech

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/sound-settings", response_model=SoundSettingsResponse)
def read_sound_settings(db: Session = Depends(get_db)) -> SoundSettingsResponse:
    return SoundSettingsResponse(settings=get_sound_settings(db))


@router.post("/sound-settings", response_model=SoundSettingsResponse)
def write_sound_settings(
    payload: SoundSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SoundSettingsResponse:
    """
    Update speech settings; keys left out keep their current value.
    """
    settings = save_sound_settings(db, payload)
    logger.info("Sound settings changed by %s", current_user.username)
    return SoundSettingsResponse(settings=settings)


@router.get("/theme", response_model=ThemeResponse)
def read_theme(db: Session = Depends(get_db)) -> ThemeResponse:
    return ThemeResponse(theme=get_theme(db))


@router.post("/theme", response_model=ThemeResponse)
def write_theme(
    payload: ThemeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ThemeResponse:
    theme = save_theme(db, payload.theme)
    logger.info("Theme changed by %s", current_user.username)
    return ThemeResponse(theme=theme)


@router.get("/google-tts")
def google_tts(
    text: str | None = Query(None, description="Text to speak (max 200 chars)"),
    lang: str = Query("th"),
) -> Response:
    """
    Proxy spoken audio for the public display.
    """
    audio = fetch_speech(text, lang)
    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Cache-Control": "public, max-age=86400"},
    )
