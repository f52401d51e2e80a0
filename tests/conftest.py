import os

# Settings are read at import time; point them at a throwaway database first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ENSURE_BEDS_ON_STARTUP", "false")
os.environ.pop("REDIS_URL", None)

from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from smart_er.api.v1.endpoints.auth import get_current_user
from smart_er.core.database import get_db
from smart_er.main import app
from smart_er.models import Base, Bed, Patient, StaffRole, User
from smart_er.services.bed_service import ensure_bed_slots


@pytest.fixture
def db_session() -> Iterator[Session]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    ensure_bed_slots(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def client(db_session: Session) -> Iterator[TestClient]:
    def _get_db() -> Iterator[Session]:
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def staff_user(db_session: Session) -> User:
    user = User(
        username="nurse1",
        hashed_password="not-used",
        full_name="Nurse One",
        role=StaffRole.NURSE,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def auth_client(client: TestClient, staff_user: User) -> TestClient:
    app.dependency_overrides[get_current_user] = lambda: staff_user
    return client


@pytest.fixture
def make_patient(db_session: Session):
    def _make(hn: str, first_name: str = "Somchai", last_name: str = "Jaidee") -> Patient:
        patient = Patient(hn=hn, first_name=first_name, last_name=last_name)
        db_session.add(patient)
        db_session.commit()
        return patient

    return _make


@pytest.fixture
def post_action(client: TestClient):
    """POST one bed action (camelCase body) and return the response."""

    def _post(**body):
        return client.post("/api/bed-actions", json=body)

    return _post


@pytest.fixture
def bed_row(db_session: Session):
    """Fresh read of a bed row, bypassing the session's identity map."""
    def _get(bed_number: str) -> Bed:
        db_session.expire_all()
        return db_session.query(Bed).filter(Bed.bed_number == bed_number).one()

    return _get
