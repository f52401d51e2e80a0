from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "local"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    # Security
    secret_key: str = "changeme"  # override in .env
    access_token_expire_minutes: int = 480

    # Database
    database_url: str

    # Redis
    redis_url: str | None = None
    settings_cache_ttl_seconds: int = 60

    # Beds 1..38 are fixed slots; create missing ones at boot
    ensure_beds_on_startup: bool = True

    # Public display
    queue_call_window_seconds: int = 10

    # Text-to-speech proxy
    tts_base_url: str = "https://translate.google.com/translate_tts"
    tts_timeout_seconds: float = 10.0

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance so the .env is parsed once.
    """
    return Settings()
