from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from smart_er.core.config import get_settings

settings = get_settings()


def _connect_args(database_url: str) -> dict:
    # SQLite connections are handed across FastAPI's threadpool workers
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# Process-wide engine; its pool is the only shared mutable resource
engine = create_engine(
    str(settings.database_url),
    future=True,
    pool_pre_ping=True,
    connect_args=_connect_args(str(settings.database_url)),
)

# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a DB session.

    The session is closed on every exit path; services that write
    wrap their statements in `transaction()`.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
    """
    Run a block of statements as one unit of work.

    Usage:
        with transaction(db):
            db.execute(update(...))
            db.add(...)

    Commits when the block exits normally; rolls back and re-raises on
    any exception, so nothing partial is ever persisted.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
