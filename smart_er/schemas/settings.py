# smart_er/schemas/settings.py
from pydantic import Field

from smart_er.schemas.common import CamelModel


class SoundSettings(CamelModel):
    google_tts_enabled: bool = True
    browser_tts_enabled: bool = False
    voice_name: str = ""
    voice_lang: str = "th-TH"
    speech_template: str = "ขอเชิญหมายเลข {{HN}} เข้ารับการรักษา"
    speech_pause: float = Field(default=0.5, ge=0, le=10)
    speech_rate: float = Field(default=1, gt=0, le=4)
    page_interval: int = Field(default=15, ge=1, le=600)
    show_sound_button: bool = True


class SoundSettingsUpdate(CamelModel):
    """Partial update; missing keys keep their stored (or default) value."""

    google_tts_enabled: bool | None = None
    browser_tts_enabled: bool | None = None
    voice_name: str | None = None
    voice_lang: str | None = None
    speech_template: str | None = None
    speech_pause: float | None = Field(default=None, ge=0, le=10)
    speech_rate: float | None = Field(default=None, gt=0, le=4)
    page_interval: int | None = Field(default=None, ge=1, le=600)
    show_sound_button: bool | None = None


class SoundSettingsResponse(CamelModel):
    success: bool = True
    settings: SoundSettings


class ThemeRequest(CamelModel):
    theme: str


class ThemeResponse(CamelModel):
    success: bool = True
    theme: str
