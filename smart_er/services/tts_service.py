# smart_er/services/tts_service.py
"""
Text-to-speech proxy for the public display.

The display cannot call Google Translate's TTS endpoint directly (CORS), so
the backend fetches the MP3 and hands it back.
"""

import logging

import httpx

from smart_er.core.config import get_settings
from smart_er.core.errors import ERError, InternalError, InvalidArgumentError

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 200
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class SpeechUpstreamError(ERError):
    """The TTS provider answered with an error status; it is passed through."""

    kind = "upstream"
    default_message = "Failed to fetch TTS audio"

    def __init__(self, status_code: int):
        super().__init__()
        self.status_code = status_code


def fetch_speech(text: str | None, lang: str = "th") -> bytes:
    """
    Fetch spoken audio (audio/mpeg) for `text`.
    Text longer than 200 characters is truncated, as the provider rejects it.
    """
    if not text:
        raise InvalidArgumentError('Query parameter "text" is required')

    settings = get_settings()
    params = {
        "ie": "UTF-8",
        "tl": lang or "th",
        "client": "tw-ob",
        "q": text[:MAX_TEXT_LENGTH],
    }

    try:
        response = httpx.get(
            settings.tts_base_url,
            params=params,
            headers={"User-Agent": USER_AGENT},
            timeout=settings.tts_timeout_seconds,
        )
    except httpx.HTTPError as exc:
        logger.warning("TTS request failed: %s", exc)
        raise InternalError("Failed to fetch TTS audio") from None

    if response.is_error:
        logger.warning("TTS provider returned status=%s", response.status_code)
        raise SpeechUpstreamError(response.status_code)

    return response.content
