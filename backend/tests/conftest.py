"""
Test configuration and shared fixtures for the vaccination booking test suite.

The schema is built once per session by running the Alembic migrations
against TEST_DATABASE_URL (a temporary SQLite file unless set). Rows are
deleted after every test; a transaction-rollback strategy is not usable here
because the availability sync commits chunk by chunk.
"""

import os
import tempfile
from datetime import date, timedelta
from pathlib import Path
from typing import Callable, Generator

# Point the application at the test database before any app module is imported
_TEMP_DB = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_TEMP_DB.close()
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", f"sqlite:///{_TEMP_DB.name}")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["RESEND_API_KEY"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402

from core.database import Base, engine_options, get_db  # noqa: E402
from models import Appointment, Patient, RecurringAvailability, User  # noqa: E402
from services.availability_sync_service import AvailabilitySyncService  # noqa: E402
from services.jwt_service import JWTService, TokenPayload  # noqa: E402
from shared_types.availability import AvailabilityDraft  # noqa: E402
from utils.datetime_utils import local_today, parse_time_string  # noqa: E402
from utils.slot_catalog import catalog_times  # noqa: E402

BACKEND_DIR = Path(__file__).resolve().parent.parent

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="session")
def db_engine():
    """Engine shared by the whole session."""
    engine = create_engine(TEST_DATABASE_URL, echo=False, **engine_options(TEST_DATABASE_URL))
    yield engine
    engine.dispose()


@pytest.fixture(scope="session", autouse=True)
def setup_test_database(db_engine):
    """
    Build the test schema from the migrations (base -> head).

    This also checks that the migrations produce a schema the models work with.
    """
    alembic_cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", TEST_DATABASE_URL)

    Base.metadata.drop_all(bind=db_engine)
    with db_engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE IF EXISTS alembic_version")

    command.upgrade(alembic_cfg, "head")

    yield

    Base.metadata.drop_all(bind=db_engine)
    with db_engine.begin() as conn:
        conn.exec_driver_sql("DROP TABLE IF EXISTS alembic_version")
    if TEST_DATABASE_URL.endswith(_TEMP_DB.name):
        os.unlink(_TEMP_DB.name)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """
    Provide a database session for a test.

    Every table is emptied afterwards, children before parents.
    """
    TestingSession = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()

    yield session

    session.rollback()
    session.close()
    with db_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def client(db_session) -> Generator[TestClient, None, None]:
    """Test client whose requests use the test session."""
    from main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def staff_user(db_session) -> User:
    user = User(
        email="pharmacien@example.com",
        password_hash=JWTService.hash_password(TEST_PASSWORD),
        full_name="Claire Dupont",
        role="staff",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def admin_user(db_session) -> User:
    user = User(
        email="admin@example.com",
        password_hash=JWTService.hash_password(TEST_PASSWORD),
        full_name="Admin Pharmacie",
        role="admin",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


def token_for(user: User) -> str:
    return JWTService.create_access_token(TokenPayload(
        sub=str(user.id), email=user.email, role=user.role, name=user.full_name
    ))


@pytest.fixture
def staff_headers(staff_user) -> dict:
    return {"Authorization": f"Bearer {token_for(staff_user)}"}


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return {"Authorization": f"Bearer {token_for(admin_user)}"}


@pytest.fixture
def patient(db_session) -> Patient:
    patient = Patient(
        first_name="Jean",
        last_name="Martin",
        email="jean.martin@example.com",
        phone="0470123456",
        status="active",
    )
    db_session.add(patient)
    db_session.commit()
    return patient


@pytest.fixture
def next_monday() -> date:
    """A Monday between one and two weeks ahead, always inside the booking window."""
    today = local_today()
    return today + timedelta(days=7 + (7 - today.weekday()) % 7)


@pytest.fixture
def open_day(db_session) -> Callable[..., None]:
    """Save a day's availability through the sync service (all slots open by default)."""

    def _open_day(owner_id: int, day: date, times=None) -> None:
        open_times = set(catalog_times() if times is None else times)
        draft = AvailabilityDraft(days={day: {t: t in open_times for t in catalog_times()}})
        AvailabilitySyncService.save_draft(db_session, owner_id, draft)

    return _open_day


@pytest.fixture
def weekly_rule(db_session) -> Callable[..., RecurringAvailability]:
    def _weekly_rule(owner_id: int, day_of_week: int, start: str, end: str, is_available=True):
        rule = RecurringAvailability(
            owner_id=owner_id,
            day_of_week=day_of_week,
            start_time=parse_time_string(start),
            end_time=parse_time_string(end),
            is_available=is_available,
        )
        db_session.add(rule)
        db_session.commit()
        return rule

    return _weekly_rule


@pytest.fixture
def make_appointment(db_session) -> Callable[..., Appointment]:
    """Insert an appointment row directly, bypassing availability checks."""

    def _make(owner_id: int, patient_id: int, day: date, slot: str, status: str = "confirmed"):
        appointment = Appointment(
            owner_id=owner_id,
            patient_id=patient_id,
            appointment_date=day,
            appointment_time=parse_time_string(slot),
            status=status,
            services=["covid"],
        )
        db_session.add(appointment)
        db_session.commit()
        return appointment

    return _make
