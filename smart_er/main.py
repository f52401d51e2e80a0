import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from smart_er.api.v1.router import api_router
from smart_er.core.config import get_settings
from smart_er.core.database import SessionLocal
from smart_er.core.errors import register_exception_handlers
from smart_er.core.logging import configure_logging
from smart_er.services.bed_service import ensure_bed_slots

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if settings.ensure_beds_on_startup:
        db = SessionLocal()
        try:
            ensure_bed_slots(db)
        finally:
            db.close()
    logger.info("Smart ER backend started (env=%s)", settings.app_env)
    yield


app = FastAPI(
    title="Smart ER Bed Management Backend",
    lifespan=lifespan,
)

register_exception_handlers(app)


@app.get("/health", tags=["health"])
async def root_health() -> dict:
    """
    Global health check endpoint.
    """
    return {"status": "ok"}


# Mount versioned API router
app.include_router(api_router, prefix=settings.api_prefix)
