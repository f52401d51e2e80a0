# smart_er/services/settings_service.py
"""
System settings (sound / speech and the selected colour theme).

Values live in system_settings as JSON text; reads go through the Redis
cache when it is available and writes invalidate it.
"""

import json
import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session

from smart_er.core.config import get_settings
from smart_er.core.database import transaction
from smart_er.core.errors import InvalidArgumentError
from smart_er.core.redis import cache_delete, cache_get, cache_set
from smart_er.models.system_setting import SystemSetting
from smart_er.schemas.settings import SoundSettings, SoundSettingsUpdate

logger = logging.getLogger(__name__)

SOUND_SETTINGS_KEY = "sound_settings"
THEME_KEY = "theme"

THEME_NAMES = ("teal", "blue", "purple", "indigo", "rose", "amber")
DEFAULT_THEME = "teal"

REDIS_SETTING_KEY_PREFIX = "setting:"


def _cache_key(setting_key: str) -> str:
    return f"{REDIS_SETTING_KEY_PREFIX}{setting_key}"


def _read_raw(db: Session, setting_key: str) -> str | None:
    cached = cache_get(_cache_key(setting_key))
    if cached is not None:
        return cached

    row = db.query(SystemSetting).filter(SystemSetting.setting_key == setting_key).first()
    value = row.setting_value if row else None
    if value is not None:
        cache_set(_cache_key(setting_key), value, ttl=get_settings().settings_cache_ttl_seconds)
    return value


def _write_raw(db: Session, setting_key: str, value: str) -> None:
    with transaction(db):
        row = db.query(SystemSetting).filter(SystemSetting.setting_key == setting_key).first()
        if row:
            row.setting_value = value
        else:
            db.add(SystemSetting(setting_key=setting_key, setting_value=value))
    cache_delete(_cache_key(setting_key))


def get_sound_settings(db: Session) -> SoundSettings:
    """Stored sound settings merged over the defaults; unreadable values fall back to defaults."""
    raw = _read_raw(db, SOUND_SETTINGS_KEY)
    if not raw:
        return SoundSettings()
    try:
        stored = json.loads(raw)
        merged = {**SoundSettings().model_dump(by_alias=True), **stored}
        return SoundSettings.model_validate(merged)
    except (ValueError, TypeError, ValidationError):
        logger.warning("Stored sound settings are invalid; using defaults")
        return SoundSettings()


def save_sound_settings(db: Session, payload: SoundSettingsUpdate) -> SoundSettings:
    current = get_sound_settings(db)
    merged = current.model_copy(update=payload.model_dump(exclude_none=True))
    _write_raw(db, SOUND_SETTINGS_KEY, merged.model_dump_json(by_alias=True))
    logger.info("Sound settings updated")
    return merged


def get_theme(db: Session) -> str:
    value = _read_raw(db, THEME_KEY)
    return value if value in THEME_NAMES else DEFAULT_THEME


def save_theme(db: Session, theme: str) -> str:
    if theme not in THEME_NAMES:
        raise InvalidArgumentError("Invalid theme")
    _write_raw(db, THEME_KEY, theme)
    logger.info("Theme set to %s", theme)
    return theme
