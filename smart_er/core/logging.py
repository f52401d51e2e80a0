import logging

from smart_er.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    """Configure the root logger once, from LOG_LEVEL."""
    settings = get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # uvicorn installs its own handlers; keep its access log at our level
    logging.getLogger("uvicorn.access").setLevel(level)
